"""Structured data collected during an onboarding conversation."""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_validator, model_validator
from pydantic.alias_generators import to_camel

from onboarding.core.validation import format_minutes, validate_schedule


class RecordModel(BaseModel):
    """Immutable model persisted with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class Schedule(RecordModel):
    weekdays: List[int]
    start_minute_of_day: int
    end_minute_of_day: int
    slot_duration_minutes: int
    rate_per_slot: float

    @field_validator("weekdays", mode="after")
    @classmethod
    def _unique_sorted(cls, value: List[int]) -> List[int]:
        return sorted(set(value))

    @model_validator(mode="after")
    def _check_window(self) -> "Schedule":
        errors = validate_schedule(
            self.weekdays,
            self.start_minute_of_day,
            self.end_minute_of_day,
            self.slot_duration_minutes,
            self.rate_per_slot,
        )
        if errors:
            raise ValueError("; ".join(errors))
        return self

    @property
    def start_time(self) -> str:
        return format_minutes(self.start_minute_of_day)

    @property
    def end_time(self) -> str:
        return format_minutes(self.end_minute_of_day)


class Facility(RecordModel):
    name: str
    sport_id: Optional[int] = None
    sport_name: Optional[str] = None
    schedules: List[Schedule] = PydanticField(default_factory=list)


class LastError(RecordModel):
    code: str
    message: str
    timestamp_utc: datetime
    retry_count: int = 0


class Escalation(RecordModel):
    reason: str


class StructuredRecord(RecordModel):
    """Everything the conversation has gathered about the sports center to create."""

    tenant_name: Optional[str] = None
    city: Optional[str] = None
    country_code: Optional[str] = None
    place_resolution_hint: Optional[str] = None
    admin_name: Optional[str] = None
    admin_email: Optional[str] = None
    facilities: List[Facility] = PydanticField(default_factory=list)
    confirmed: bool = False
    language: Optional[str] = None
    last_error: Optional[LastError] = None
    escalated: Optional[Escalation] = None

    @classmethod
    def from_document(cls, document: Optional[dict[str, Any]]) -> Optional["StructuredRecord"]:
        if document is None:
            return None
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = ["Escalation", "Facility", "LastError", "Schedule", "StructuredRecord"]
