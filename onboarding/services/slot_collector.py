"""Fold assistant tool calls into the structured onboarding record.

Each tool call kind has its own reducer. A reducer only replaces a field when
the call carries a non-blank value for it, so information gathered in earlier
turns is never wiped by a later, partial call. Reducers are pure: they return
a new :class:`StructuredRecord` and the caller persists it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from pydantic import ValidationError

from onboarding.core.validation import normalize_email, parse_time, validate_facility_schedules
from onboarding.schemas.record import Escalation, Facility, Schedule, StructuredRecord
from onboarding.schemas.tool_calls import (
    CollectAdminInfo,
    CollectFacility,
    CollectSportsCenterInfo,
    ConfirmConfiguration,
    CreateSportsCenter,
    DetectLanguage,
    RequestHumanHelp,
    ScheduleInput,
    ToolCall,
    UnknownToolCall,
    UpdateFacility,
)

from . import readiness

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolOutcome:
    """Answer returned to the assistant for one tool call."""

    tool: str
    success: bool
    message: str
    errors: List[str] = field(default_factory=list)


Applied = Tuple[StructuredRecord, ToolOutcome]


def _text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _merge(current: Optional[str], incoming: Optional[str]) -> Optional[str]:
    return _text(incoming) or current


def _build_schedules(inputs: Sequence[ScheduleInput]) -> Tuple[List[Schedule], List[str]]:
    errors = validate_facility_schedules([item.model_dump() for item in inputs])
    if errors:
        return [], errors

    schedules: List[Schedule] = []
    for index, item in enumerate(inputs, start=1):
        try:
            schedules.append(
                Schedule(
                    weekdays=item.weekdays,
                    start_minute_of_day=parse_time(item.start_time),
                    end_minute_of_day=parse_time(item.end_time),
                    slot_duration_minutes=item.duration,
                    rate_per_slot=item.rate,
                )
            )
        except ValidationError as exc:
            errors.extend(f"Schedule {index}: {error['msg']}" for error in exc.errors())
    return schedules, errors


class SlotCollector:
    """Apply tool calls to a record, one field-by-field reducer per call kind."""

    def __init__(self) -> None:
        self._reducers: Dict[str, Callable[[StructuredRecord, ToolCall], Applied]] = {
            "detect_language": self._detect_language,
            "collect_sports_center_info": self._collect_sports_center_info,
            "collect_admin_info": self._collect_admin_info,
            "collect_facility": self._collect_facility,
            "update_facility": self._update_facility,
            "confirm_configuration": self._confirm_configuration,
            "request_human_help": self._request_human_help,
            "create_sports_center": self._create_sports_center,
            "unknown": self._unknown,
        }

    def apply(self, record: StructuredRecord, call: ToolCall) -> StructuredRecord:
        updated, _ = self.apply_with_outcome(record, call)
        return updated

    def apply_with_outcome(self, record: StructuredRecord, call: ToolCall) -> Applied:
        return self._reducers[call.kind](record, call)

    # ------------------------------------------------------------------
    # Reducers
    # ------------------------------------------------------------------
    @staticmethod
    def _detect_language(record: StructuredRecord, call: DetectLanguage) -> Applied:
        language = call.language_code.strip().lower() or record.language
        return (
            record.model_copy(update={"language": language}),
            ToolOutcome(call.kind, True, f"Language set to {language}"),
        )

    @staticmethod
    def _collect_sports_center_info(
        record: StructuredRecord, call: CollectSportsCenterInfo
    ) -> Applied:
        country = _text(call.country)
        updated = record.model_copy(
            update={
                "tenant_name": _merge(record.tenant_name, call.name),
                "city": _merge(record.city, call.city),
                "country_code": country.upper() if country else record.country_code,
                "place_resolution_hint": _merge(record.place_resolution_hint, call.place_id),
            }
        )
        return updated, ToolOutcome(call.kind, True, "Sports center info saved")

    @staticmethod
    def _collect_admin_info(record: StructuredRecord, call: CollectAdminInfo) -> Applied:
        changes = {"admin_name": _merge(record.admin_name, call.name)}
        errors: List[str] = []
        if _text(call.email):
            email = normalize_email(call.email)
            if email is None:
                LOGGER.warning("[SlotCollector] discarding invalid admin email %r", call.email)
                errors.append(f"Invalid email address: {call.email.strip()}")
            else:
                changes["admin_email"] = email

        updated = record.model_copy(update=changes)
        if errors:
            return updated, ToolOutcome(call.kind, False, "Admin info saved without email", errors)
        return updated, ToolOutcome(call.kind, True, "Admin info saved")

    @staticmethod
    def _collect_facility(record: StructuredRecord, call: CollectFacility) -> Applied:
        name = _text(call.name)
        if name is None:
            return record, ToolOutcome(
                call.kind, False, "Facility not saved", ["Facility name is required"]
            )

        schedules, errors = _build_schedules(call.schedules)
        if errors:
            LOGGER.warning("[SlotCollector] facility %r rejected: %s", name, errors)
            return record, ToolOutcome(call.kind, False, f'Facility "{name}" not saved', errors)

        facility = Facility(
            name=name,
            sport_id=call.sport_id,
            sport_name=_text(call.sport_name),
            schedules=schedules,
        )
        updated = record.model_copy(update={"facilities": [*record.facilities, facility]})
        return updated, ToolOutcome(call.kind, True, f'Facility "{name}" saved')

    @staticmethod
    def _update_facility(record: StructuredRecord, call: UpdateFacility) -> Applied:
        index = call.facility_index
        if not 0 <= index < len(record.facilities):
            LOGGER.warning(
                "[SlotCollector] facility index %s out of range (%s facilities)",
                index,
                len(record.facilities),
            )
            return record, ToolOutcome(
                call.kind, False, f"No facility at index {index}", [f"Invalid facility index: {index}"]
            )

        current = record.facilities[index]
        changes = {
            "name": _merge(current.name, call.name),
            "sport_id": call.sport_id if call.sport_id is not None else current.sport_id,
            "sport_name": _merge(current.sport_name, call.sport_name),
        }
        if call.schedules is not None:
            schedules, errors = _build_schedules(call.schedules)
            if errors:
                LOGGER.warning("[SlotCollector] update of facility %s rejected: %s", index, errors)
                return record, ToolOutcome(
                    call.kind, False, f"Facility at index {index} not updated", errors
                )
            changes["schedules"] = schedules

        facilities = list(record.facilities)
        facilities[index] = current.model_copy(update=changes)
        return (
            record.model_copy(update={"facilities": facilities}),
            ToolOutcome(call.kind, True, f"Facility at index {index} updated"),
        )

    @staticmethod
    def _confirm_configuration(record: StructuredRecord, call: ConfirmConfiguration) -> Applied:
        if not call.confirmed:
            return (
                record.model_copy(update={"confirmed": False}),
                ToolOutcome(call.kind, True, "Configuration not confirmed"),
            )

        check = readiness.check(record)
        if not check.ready:
            LOGGER.warning("[SlotCollector] confirmation refused, %s", check.message)
            return record, ToolOutcome(
                call.kind, False, "Configuration is not complete", [check.message]
            )
        return (
            record.model_copy(update={"confirmed": True}),
            ToolOutcome(call.kind, True, "Configuration confirmed - ready to create sports center"),
        )

    @staticmethod
    def _request_human_help(record: StructuredRecord, call: RequestHumanHelp) -> Applied:
        reason = call.reason.strip()
        details = _text(call.details)
        if details:
            reason = f"{reason}: {details}"
        return (
            record.model_copy(update={"escalated": Escalation(reason=reason)}),
            ToolOutcome(call.kind, True, "Human help requested"),
        )

    @staticmethod
    def _create_sports_center(record: StructuredRecord, call: CreateSportsCenter) -> Applied:
        return record, ToolOutcome(
            call.kind, True, "Sports center creation initiated - awaiting execution"
        )

    @staticmethod
    def _unknown(record: StructuredRecord, call: UnknownToolCall) -> Applied:
        LOGGER.warning("[SlotCollector] ignoring tool call %s: %s", call.name, call.reason)
        return record, ToolOutcome(call.name, False, "Unknown function", [call.reason])


__all__ = ["SlotCollector", "ToolOutcome"]
