"""Input validation shared by the record schemas and the slot collector."""

from __future__ import annotations

import re
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from pydantic import EmailStr, TypeAdapter, ValidationError

MIN_SLOT_MINUTES = 15
MAX_SLOT_MINUTES = 480

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
_EMAIL_ADAPTER = TypeAdapter(EmailStr)


def parse_time(value: Any) -> Optional[int]:
    """Parse ``HH:MM`` into minutes since midnight, ``None`` when malformed."""

    if not isinstance(value, str):
        return None
    match = _TIME_PATTERN.match(value.strip())
    if not match:
        return None
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        return None
    return hours * 60 + minutes


def format_minutes(minutes: int) -> str:
    hours, rest = divmod(minutes, 60)
    return f"{hours:02d}:{rest:02d}"


def validate_schedule(
    weekdays: Optional[Iterable[Any]],
    start_minute: Optional[int],
    end_minute: Optional[int],
    duration: Any,
    rate: Any,
) -> List[str]:
    """Return the list of problems found in a schedule, empty when valid."""

    errors: List[str] = []

    days = list(weekdays or [])
    if not days:
        errors.append("At least one weekday must be selected")
    for day in days:
        if not isinstance(day, int) or isinstance(day, bool) or not 1 <= day <= 7:
            errors.append(f"Invalid weekday: {day}. Must be 1-7 (Monday-Sunday)")

    if not isinstance(duration, (int, float)) or isinstance(duration, bool):
        errors.append(f"Invalid duration: {duration}")
        duration = None

    if start_minute is not None and end_minute is not None:
        if end_minute <= start_minute:
            errors.append("End time must be after start time")
        elif duration is not None:
            operating = end_minute - start_minute
            if duration <= 0:
                errors.append("Duration must be greater than 0")
            elif operating % duration != 0:
                errors.append(
                    f"Duration ({duration} min) does not divide evenly into "
                    f"operating hours ({operating} min)"
                )

    if duration is not None:
        if duration < MIN_SLOT_MINUTES:
            errors.append(f"Duration should be at least {MIN_SLOT_MINUTES} minutes")
        elif duration > MAX_SLOT_MINUTES:
            errors.append(f"Duration should not exceed 8 hours ({MAX_SLOT_MINUTES} minutes)")

    if not isinstance(rate, (int, float)) or isinstance(rate, bool):
        errors.append(f"Invalid rate: {rate}")
    elif rate < 0:
        errors.append("Rate cannot be negative")

    return errors


def validate_schedule_input(schedule: Mapping[str, Any]) -> List[str]:
    """Validate a schedule expressed with ``HH:MM`` times as sent by the assistant."""

    start_time = schedule.get("start_time")
    end_time = schedule.get("end_time")
    start_minute = parse_time(start_time)
    end_minute = parse_time(end_time)

    errors: List[str] = []
    if start_minute is None:
        errors.append(f"Invalid start time format: {start_time}. Use HH:mm format")
    if end_minute is None:
        errors.append(f"Invalid end time format: {end_time}. Use HH:mm format")
    errors.extend(
        validate_schedule(
            schedule.get("weekdays"),
            start_minute,
            end_minute,
            schedule.get("duration"),
            schedule.get("rate"),
        )
    )
    return errors


def validate_facility_schedules(schedules: Sequence[Mapping[str, Any]]) -> List[str]:
    if not schedules:
        return ["At least one schedule is required"]

    errors: List[str] = []
    for index, schedule in enumerate(schedules, start=1):
        errors.extend(f"Schedule {index}: {error}" for error in validate_schedule_input(schedule))
    return errors


def normalize_email(value: Optional[str]) -> Optional[str]:
    """Trim and lower-case an email, returning ``None`` when it is not valid."""

    if not value:
        return None
    candidate = value.strip().lower()
    try:
        return str(_EMAIL_ADAPTER.validate_python(candidate))
    except ValidationError:
        return None


__all__ = [
    "MAX_SLOT_MINUTES",
    "MIN_SLOT_MINUTES",
    "format_minutes",
    "normalize_email",
    "parse_time",
    "validate_facility_schedules",
    "validate_schedule",
    "validate_schedule_input",
]
