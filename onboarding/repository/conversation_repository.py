"""Record store for onboarding conversations and their collected data."""

from __future__ import annotations

import logging
import uuid
from typing import Callable, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import sessionmaker

from onboarding.core.config import settings
from onboarding.core.database import DatabaseError, session_scope
from onboarding.models import Conversation, ConversationStatus
from onboarding.schemas.record import StructuredRecord

LOGGER = logging.getLogger(__name__)

RecordUpdater = Callable[[StructuredRecord], StructuredRecord]


class ConcurrentUpdateError(DatabaseError):
    """Raised when a conversation keeps changing underneath a merge update."""


class ConversationRepository:
    """Conversation persistence. Every call runs in its own short transaction."""

    def __init__(self, session_factory: sessionmaker, *, max_attempts: Optional[int] = None) -> None:
        self._session_factory = session_factory
        self._max_attempts = max_attempts or settings.RECORD_UPDATE_MAX_ATTEMPTS

    def create(self, session_id: str, language: str) -> Conversation:
        conversation = Conversation(
            id=str(uuid.uuid4()),
            session_id=session_id,
            language=language,
            status=ConversationStatus.ACTIVE.value,
            collected_data=StructuredRecord(language=language).to_document(),
            version=0,
        )
        with session_scope(self._session_factory) as session:
            session.add(conversation)
            session.flush()
            session.refresh(conversation)
        LOGGER.info(
            "[ConversationRepository] created conversation %s for session %s",
            conversation.id,
            session_id,
        )
        return conversation

    def get(self, conversation_id: str) -> Optional[Conversation]:
        with session_scope(self._session_factory) as session:
            return session.get(Conversation, conversation_id)

    def get_record(self, conversation_id: str) -> Optional[StructuredRecord]:
        with session_scope(self._session_factory) as session:
            document = session.execute(
                select(Conversation.collected_data).where(Conversation.id == conversation_id)
            ).scalar_one_or_none()
        return StructuredRecord.from_document(document)

    def merge_update(
        self, conversation_id: str, updater: RecordUpdater
    ) -> Optional[StructuredRecord]:
        """Apply ``updater`` to the stored record with an optimistic version check.

        Returns ``None`` when the conversation does not exist. A lost race
        re-reads the record and re-applies ``updater``.
        """

        for attempt in range(1, self._max_attempts + 1):
            with session_scope(self._session_factory) as session:
                row = session.execute(
                    select(Conversation.collected_data, Conversation.version).where(
                        Conversation.id == conversation_id
                    )
                ).one_or_none()
                if row is None:
                    return None

                current = StructuredRecord.from_document(row.collected_data) or StructuredRecord()
                updated = updater(current)
                result = session.execute(
                    update(Conversation)
                    .where(Conversation.id == conversation_id, Conversation.version == row.version)
                    .values(
                        collected_data=updated.to_document(),
                        version=Conversation.version + 1,
                        updated_at=func.now(),
                    )
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount == 1:
                    return updated

            LOGGER.warning(
                "[ConversationRepository] concurrent update on %s (attempt %s/%s)",
                conversation_id,
                attempt,
                self._max_attempts,
            )

        raise ConcurrentUpdateError(
            f"Conversation {conversation_id} was modified concurrently {self._max_attempts} times"
        )

    def set_status(
        self,
        conversation_id: str,
        status: ConversationStatus,
        *,
        sports_center_id: Optional[int] = None,
    ) -> bool:
        values: dict = {"status": status.value, "updated_at": func.now()}
        if sports_center_id is not None:
            values["sports_center_id"] = sports_center_id
        with session_scope(self._session_factory) as session:
            result = session.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
        LOGGER.info(
            "[ConversationRepository] conversation %s status -> %s", conversation_id, status.value
        )
        return result.rowcount == 1

    def set_language(self, conversation_id: str, language: str) -> None:
        with session_scope(self._session_factory) as session:
            session.execute(
                update(Conversation)
                .where(Conversation.id == conversation_id)
                .values(language=language, updated_at=func.now())
                .execution_options(synchronize_session=False)
            )


__all__ = ["ConcurrentUpdateError", "ConversationRepository", "RecordUpdater"]
