"""Readiness gate and the progress views derived from a structured record."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from onboarding.schemas.record import Schedule, StructuredRecord

TENANT_NAME = "tenantName"
CITY = "city"
ADMIN_NAME = "adminName"
ADMIN_EMAIL = "adminEmail"
FACILITIES = "facilities"

REQUIRED_FIELDS: Tuple[str, ...] = (TENANT_NAME, CITY, ADMIN_NAME, ADMIN_EMAIL, FACILITIES)

_DAY_NAMES = ("", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


@dataclass(frozen=True)
class Readiness:
    ready: bool
    missing: List[str] = field(default_factory=list)

    @property
    def message(self) -> str:
        if self.ready:
            return "ready"
        return "missing: " + ", ".join(self.missing)


@dataclass(frozen=True)
class ProgressStep:
    name: str
    completed: bool


@dataclass(frozen=True)
class Progress:
    steps: List[ProgressStep]

    @property
    def completion_percentage(self) -> int:
        if not self.steps:
            return 0
        done = sum(1 for step in self.steps if step.completed)
        return int(done * 100 / len(self.steps) + 0.5)


def _present(value: object) -> bool:
    return isinstance(value, str) and bool(value.strip())


def check(record: StructuredRecord) -> Readiness:
    """Report which required fields are still missing. Confirmation is not one of them."""

    present = {
        TENANT_NAME: _present(record.tenant_name),
        CITY: _present(record.city),
        ADMIN_NAME: _present(record.admin_name),
        ADMIN_EMAIL: _present(record.admin_email),
        FACILITIES: len(record.facilities) > 0,
    }
    missing = [name for name in REQUIRED_FIELDS if not present[name]]
    return Readiness(ready=not missing, missing=missing)


def progress(record: StructuredRecord) -> Progress:
    return Progress(
        steps=[
            ProgressStep("sportsCenterInfo", _present(record.tenant_name) and _present(record.city)),
            ProgressStep("adminInfo", _present(record.admin_name) and _present(record.admin_email)),
            ProgressStep("facilities", len(record.facilities) > 0),
            ProgressStep("confirmation", record.confirmed),
        ]
    )


def format_weekdays(days: Sequence[int]) -> str:
    unique = sorted(set(days))
    if len(unique) == 7:
        return "Every day"
    if unique == [1, 2, 3, 4, 5]:
        return "Monday to Friday"
    if unique == [6, 7]:
        return "Weekends"
    return ", ".join(_DAY_NAMES[day] for day in unique if 1 <= day <= 7)


def _format_schedule(schedule: Schedule) -> str:
    return (
        f"{format_weekdays(schedule.weekdays)} {schedule.start_time} - {schedule.end_time}, "
        f"{schedule.slot_duration_minutes} min slots at {schedule.rate_per_slot:.2f}"
    )


def summarize(record: StructuredRecord) -> str:
    """Human readable summary shown to the user before confirmation."""

    lines = [
        f"Sports center: {record.tenant_name or '-'}",
        f"City: {record.city or '-'}",
        f"Language: {record.language or '-'}",
        f"Administrator: {record.admin_name or '-'} <{record.admin_email or '-'}>",
        f"Facilities ({len(record.facilities)}):",
    ]
    for facility in record.facilities:
        sport = facility.sport_name or (f"sport #{facility.sport_id}" if facility.sport_id else "-")
        lines.append(f"- {facility.name} ({sport})")
        lines.extend(f"    {_format_schedule(schedule)}" for schedule in facility.schedules)
    lines.append(f"Confirmed: {'yes' if record.confirmed else 'no'}")

    readiness = check(record)
    if not readiness.ready:
        lines.append(readiness.message)
    return "\n".join(lines)


__all__ = [
    "REQUIRED_FIELDS",
    "Progress",
    "ProgressStep",
    "Readiness",
    "check",
    "format_weekdays",
    "progress",
    "summarize",
]
