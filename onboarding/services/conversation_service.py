"""Conversation workflow: tool calls in, structured record and creation out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

from onboarding.core.config import settings
from onboarding.models import Conversation, ConversationStatus
from onboarding.repository.conversation_repository import ConversationRepository
from onboarding.schemas.creation import CreationResult
from onboarding.schemas.record import Escalation, StructuredRecord
from onboarding.schemas.tool_calls import DetectLanguage, ToolCall, parse_tool_call

from . import analytics_service as events
from . import readiness as readiness_gate
from .analytics_service import AnalyticsService
from .creation_service import SportsCenterCreationService
from .slot_collector import SlotCollector, ToolOutcome

LOGGER = logging.getLogger(__name__)

RawToolCall = Tuple[str, Union[str, Mapping[str, Any], None]]


class ConversationNotFoundError(LookupError):
    def __init__(self, conversation_id: str) -> None:
        super().__init__(f"Conversation {conversation_id} not found")
        self.conversation_id = conversation_id


class ConversationStateError(RuntimeError):
    """Raised when an operation is not allowed in the conversation's current status."""


@dataclass(frozen=True)
class AppliedToolCall:
    outcome: ToolOutcome
    creation: Optional[CreationResult] = None


class ConversationService:
    def __init__(
        self,
        *,
        conversations: ConversationRepository,
        creation: SportsCenterCreationService,
        analytics: AnalyticsService,
        collector: Optional[SlotCollector] = None,
    ) -> None:
        self._conversations = conversations
        self._creation = creation
        self._analytics = analytics
        self._collector = collector or SlotCollector()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self, session_id: str, language: Optional[str] = None) -> Conversation:
        conversation = self._conversations.create(session_id, language or settings.DEFAULT_LANGUAGE)
        self._analytics.log_event(
            events.CONVERSATION_STARTED,
            conversation_id=conversation.id,
            payload={"session_id": session_id, "language": conversation.language},
        )
        return conversation

    def get(self, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            raise ConversationNotFoundError(conversation_id)
        return conversation

    def restart(self, conversation_id: str) -> Conversation:
        """Abandon the conversation and open a fresh one for the same session."""

        conversation = self.get(conversation_id)
        if conversation.status == ConversationStatus.COMPLETED.value:
            raise ConversationStateError(
                "A sports center was already created from this conversation"
            )

        self._conversations.set_status(conversation_id, ConversationStatus.ABANDONED)
        self._analytics.log_event(events.CONVERSATION_ABANDONED, conversation_id=conversation_id)
        LOGGER.info("[ConversationService] conversation %s abandoned by restart", conversation_id)
        return self.start(conversation.session_id, conversation.language)

    def escalate(self, conversation_id: str, reason: str) -> StructuredRecord:
        record = self._conversations.merge_update(
            conversation_id,
            lambda current: current.model_copy(update={"escalated": Escalation(reason=reason.strip())}),
        )
        if record is None:
            raise ConversationNotFoundError(conversation_id)
        self._analytics.log_event(
            events.CONVERSATION_ESCALATED, conversation_id=conversation_id, payload={"reason": reason}
        )
        return record

    # ------------------------------------------------------------------
    # Tool calls
    # ------------------------------------------------------------------
    def handle_tool_calls(
        self, conversation_id: str, calls: Sequence[RawToolCall]
    ) -> Tuple[List[AppliedToolCall], StructuredRecord]:
        conversation = self.get(conversation_id)
        if conversation.status != ConversationStatus.ACTIVE.value:
            raise ConversationStateError(
                f"Conversation {conversation_id} is {conversation.status}"
            )

        applied: List[AppliedToolCall] = []
        for name, arguments in calls:
            call = parse_tool_call(name, arguments)
            LOGGER.info("[ConversationService] %s: applying %s", conversation_id, call.kind)
            applied.append(self._apply(conversation_id, call))

        record = self._conversations.get_record(conversation_id) or StructuredRecord()
        return applied, record

    def _apply(self, conversation_id: str, call: ToolCall) -> AppliedToolCall:
        outcomes: List[ToolOutcome] = []

        def _updater(record: StructuredRecord) -> StructuredRecord:
            # Re-run on optimistic retries; only the last outcome counts
            updated, outcome = self._collector.apply_with_outcome(record, call)
            outcomes.append(outcome)
            return updated

        record = self._conversations.merge_update(conversation_id, _updater)
        if record is None:
            raise ConversationNotFoundError(conversation_id)
        outcome = outcomes[-1]

        if isinstance(call, DetectLanguage) and record.language:
            self._conversations.set_language(conversation_id, record.language)

        if call.kind == "request_human_help":
            self._analytics.log_event(
                events.CONVERSATION_ESCALATED,
                conversation_id=conversation_id,
                payload={"reason": record.escalated.reason if record.escalated else None},
            )

        if call.kind != "create_sports_center":
            return AppliedToolCall(outcome=outcome)

        creation = self._creation.create_from_conversation(conversation_id)
        if creation.success:
            message = "Sports center created"
        else:
            message = creation.error.message
        return AppliedToolCall(
            outcome=ToolOutcome(
                tool=outcome.tool,
                success=creation.success,
                message=message,
                errors=[] if creation.success else [creation.error.code],
            ),
            creation=creation,
        )

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------
    def record(self, conversation_id: str) -> StructuredRecord:
        record = self._conversations.get_record(conversation_id)
        if record is None:
            raise ConversationNotFoundError(conversation_id)
        return record

    def readiness(self, conversation_id: str) -> Tuple[readiness_gate.Readiness, StructuredRecord]:
        record = self.record(conversation_id)
        return readiness_gate.check(record), record

    def progress(self, conversation_id: str) -> readiness_gate.Progress:
        return readiness_gate.progress(self.record(conversation_id))

    def summary(self, conversation_id: str) -> str:
        return readiness_gate.summarize(self.record(conversation_id))


__all__ = [
    "AppliedToolCall",
    "ConversationNotFoundError",
    "ConversationService",
    "ConversationStateError",
    "RawToolCall",
]
