from .analytics_repository import AnalyticsRepository
from .conversation_repository import ConcurrentUpdateError, ConversationRepository, RecordUpdater
from .email_repository import EmailContent, EmailDeliveryError, EmailRepository
from .geography_repository import CANDIDATE_LIMIT, GeographyRepository
from .sports_center_repository import SportsCenterRepository
from . import tenant_repository

__all__ = [
    "AnalyticsRepository",
    "CANDIDATE_LIMIT",
    "ConcurrentUpdateError",
    "ConversationRepository",
    "EmailContent",
    "EmailDeliveryError",
    "EmailRepository",
    "GeographyRepository",
    "RecordUpdater",
    "SportsCenterRepository",
    "tenant_repository",
]
