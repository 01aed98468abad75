"""Local summaries of the sports centers created through onboarding."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from onboarding.core.database import DatabaseError, session_scope
from onboarding.models import SportsCenter

LOGGER = logging.getLogger(__name__)


class SportsCenterRepository:
    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def get_by_conversation(self, conversation_id: str) -> Optional[SportsCenter]:
        with session_scope(self._session_factory) as session:
            return session.execute(
                select(SportsCenter).where(SportsCenter.conversation_id == conversation_id)
            ).scalar_one_or_none()

    def create(self, sports_center: SportsCenter) -> SportsCenter:
        """Store the summary; a summary already stored for the conversation wins."""

        session = self._session_factory()
        try:
            session.add(sports_center)
            session.commit()
            session.refresh(sports_center)
            return sports_center
        except IntegrityError:
            session.rollback()
            LOGGER.warning(
                "[SportsCenterRepository] summary already stored for conversation %s",
                sports_center.conversation_id,
            )
        except SQLAlchemyError as exc:
            session.rollback()
            raise DatabaseError(str(exc)) from exc
        finally:
            session.close()

        existing = self.get_by_conversation(sports_center.conversation_id)
        if existing is None:
            raise DatabaseError(
                f"Sports center summary for {sports_center.conversation_id} vanished after conflict"
            )
        return existing


__all__ = ["SportsCenterRepository"]
