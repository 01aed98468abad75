from .analytics_event import AnalyticsEvent
from .base import ConversationBase
from .conversation import Conversation, ConversationStatus
from .sports_center import SportsCenter

__all__ = [
    "AnalyticsEvent",
    "Conversation",
    "ConversationBase",
    "ConversationStatus",
    "SportsCenter",
]
