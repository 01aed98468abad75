"""Best-effort analytics for the onboarding funnel."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import sessionmaker

from onboarding.core.database import DatabaseError, session_scope
from onboarding.repository.analytics_repository import AnalyticsRepository

LOGGER = logging.getLogger(__name__)

CONVERSATION_STARTED = "conversation_started"
CONVERSATION_COMPLETED = "conversation_completed"
CONVERSATION_ABANDONED = "conversation_abandoned"
CONVERSATION_ESCALATED = "conversation_escalated"
SPORTS_CENTER_CREATED = "sports_center_created"
SPORTS_CENTER_FAILED = "sports_center_failed"
EMAIL_SENT = "email_sent"
EMAIL_FAILED = "email_failed"


class AnalyticsService:
    """Records funnel events. Failures are logged and never reach the caller."""

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def log_event(
        self,
        event_type: str,
        *,
        conversation_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Optional[int]:
        try:
            with session_scope(self._session_factory) as session:
                return AnalyticsRepository(session).add_event(
                    event_type, conversation_id=conversation_id, payload=payload
                )
        except DatabaseError as exc:
            LOGGER.warning(
                "[AnalyticsService] could not record %s for conversation %s: %s",
                event_type,
                conversation_id,
                exc,
            )
        except Exception:  # pragma: no cover - analytics must never break the flow
            LOGGER.exception("[AnalyticsService] unexpected error recording %s", event_type)
        return None


__all__ = [
    "AnalyticsService",
    "CONVERSATION_ABANDONED",
    "CONVERSATION_COMPLETED",
    "CONVERSATION_ESCALATED",
    "CONVERSATION_STARTED",
    "EMAIL_FAILED",
    "EMAIL_SENT",
    "SPORTS_CENTER_CREATED",
    "SPORTS_CENTER_FAILED",
]
