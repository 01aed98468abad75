"""Persistence for analytics events."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from onboarding.core.database import DatabaseError
from onboarding.models import AnalyticsEvent

LOGGER = logging.getLogger(__name__)


class AnalyticsRepository:
    """Persistence helpers for the analytics_events table."""

    def __init__(self, db: Session) -> None:
        self._db = db

    def add_event(
        self,
        event_type: str,
        *,
        conversation_id: Optional[str] = None,
        payload: Optional[Dict[str, Any]] = None,
    ) -> int:
        event = AnalyticsEvent(
            event_type=event_type,
            conversation_id=conversation_id,
            payload=payload or {},
        )
        try:
            self._db.add(event)
            self._db.flush()
        except SQLAlchemyError as exc:
            raise DatabaseError(str(exc)) from exc
        LOGGER.debug(
            "[AnalyticsRepository] stored event %s id=%s conversation=%s",
            event_type,
            event.id,
            conversation_id,
        )
        return event.id


__all__ = ["AnalyticsRepository"]
