"""HTTP client for the Google Places (v1) place details endpoint."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from onboarding.core.cache import TTLCache
from onboarding.core.config import settings

LOGGER = logging.getLogger(__name__)

DETAILS_FIELD_MASK = "id,displayName,formattedAddress,addressComponents,location"
_LOCALITY_TYPES = ("locality", "administrative_area_level_3", "administrative_area_level_2")


class PlacesClientError(RuntimeError):
    """Raised when a place lookup cannot be completed."""

    def __init__(self, message: str, *, code: str = "PLACES_ERROR", status_code: Optional[int] = None):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


@dataclass(frozen=True)
class PlaceDetails:
    place_id: str
    name: str
    formatted_address: str
    country_name: str
    country_code: str
    latitude: float = 0.0
    longitude: float = 0.0


def _find_component(components: List[Dict[str, Any]], kind: str) -> Optional[Dict[str, Any]]:
    for component in components:
        if kind in component.get("types", []):
            return component
    return None


def _parse_place(payload: Any) -> PlaceDetails:
    if not isinstance(payload, dict):
        raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
    components = payload.get("addressComponents") or []
    country = _find_component(components, "country") or {}

    locality_name = ""
    for kind in _LOCALITY_TYPES:
        component = _find_component(components, kind)
        if component:
            locality_name = component.get("longText", "")
            break
    if not locality_name:
        locality_name = (payload.get("displayName") or {}).get("text", "")

    location = payload.get("location") or {}
    return PlaceDetails(
        place_id=payload.get("id", ""),
        name=locality_name,
        formatted_address=payload.get("formattedAddress", ""),
        country_name=country.get("longText", ""),
        country_code=country.get("shortText", "").upper(),
        latitude=float(location.get("latitude") or 0.0),
        longitude=float(location.get("longitude") or 0.0),
    )


class PlacesClient:
    """Small wrapper around the place details endpoint with a TTL cache."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache: Optional[TTLCache[PlaceDetails]] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._api_key = api_key if api_key is not None else settings.GOOGLE_PLACES_API_KEY
        self._base_url = (base_url or settings.GOOGLE_PLACES_BASE_URL).rstrip("/")
        self._timeout = timeout or settings.PLACES_TIMEOUT_SECONDS
        self._cache = cache if cache is not None else TTLCache(settings.PLACES_CACHE_TTL_SECONDS)
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    def get_place_details(self, place_id: str, language: str = "es") -> PlaceDetails:
        if not self.is_configured:
            raise PlacesClientError("Google Places API key not configured", code="NOT_CONFIGURED")

        cache_key = (place_id, language)
        cached = self._cache.get(cache_key)
        if cached is not None:
            LOGGER.debug("Place details cache hit for %s", place_id)
            return cached

        payload = self._request(place_id, language)
        try:
            details = _parse_place(payload)
        except (AttributeError, TypeError, ValueError) as exc:
            LOGGER.warning("Malformed place details for %s: %s", place_id, exc)
            raise PlacesClientError("Invalid place details payload", code="INVALID_RESPONSE") from exc
        if not details.name:
            raise PlacesClientError(f"Place {place_id} has no locality name", code="EMPTY_RESULT")
        self._cache.set(cache_key, details)
        return details

    def _request(self, place_id: str, language: str) -> Any:
        url = f"{self._base_url}/places/{place_id}"
        headers = {
            "Content-Type": "application/json",
            "X-Goog-Api-Key": self._api_key or "",
            "X-Goog-FieldMask": DETAILS_FIELD_MASK,
        }
        params = {"languageCode": language}

        try:
            if self._client is not None:
                response = self._client.get(url, headers=headers, params=params, timeout=self._timeout)
            else:
                with httpx.Client(timeout=self._timeout) as client:
                    response = client.get(url, headers=headers, params=params)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as exc:
            LOGGER.warning("Place details request for %s timed out", place_id)
            raise PlacesClientError("Place lookup timed out", code="TIMEOUT") from exc
        except httpx.HTTPStatusError as exc:
            LOGGER.warning(
                "Google Places returned HTTP %s for %s: %s",
                exc.response.status_code,
                place_id,
                exc.response.text,
            )
            raise PlacesClientError(
                "Place lookup failed",
                code="HTTP_ERROR",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.RequestError as exc:
            LOGGER.warning("Failed to reach Google Places: %s", exc)
            raise PlacesClientError("Place lookup failed", code="NETWORK_ERROR") from exc
        except ValueError as exc:
            raise PlacesClientError("Invalid place details payload", code="INVALID_RESPONSE") from exc


__all__ = ["PlaceDetails", "PlacesClient", "PlacesClientError"]
