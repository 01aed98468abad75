from .analytics_service import AnalyticsService
from .city_resolver import CityResolver
from .conversation_service import (
    AppliedToolCall,
    ConversationNotFoundError,
    ConversationService,
    ConversationStateError,
)
from .creation_service import SportsCenterCreationService
from .notification_service import EmailNotifier, NotificationResult, WelcomeNotifier
from .provisioning_service import ProvisioningError, ProvisioningService
from .slot_collector import SlotCollector, ToolOutcome
from .sport_catalog import SportCatalog, SportEntry

__all__ = [
    "AnalyticsService",
    "AppliedToolCall",
    "CityResolver",
    "ConversationNotFoundError",
    "ConversationService",
    "ConversationStateError",
    "EmailNotifier",
    "NotificationResult",
    "ProvisioningError",
    "ProvisioningService",
    "SlotCollector",
    "SportCatalog",
    "SportEntry",
    "SportsCenterCreationService",
    "ToolOutcome",
    "WelcomeNotifier",
]
