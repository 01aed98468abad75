from .places_client import PlaceDetails, PlacesClient, PlacesClientError

__all__ = ["PlaceDetails", "PlacesClient", "PlacesClientError"]
