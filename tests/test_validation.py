import pytest
from pydantic import ValidationError

from onboarding.core.validation import (
    format_minutes,
    normalize_email,
    parse_time,
    validate_facility_schedules,
    validate_schedule,
)
from onboarding.schemas.record import Schedule

WEEKDAYS = [1, 2, 3, 4, 5]


def test_duration_that_does_not_divide_the_window_is_rejected():
    errors = validate_schedule(WEEKDAYS, 540, 1260, 50, 10)

    assert errors == [
        "Duration (50 min) does not divide evenly into operating hours (720 min)"
    ]


def test_duration_that_divides_the_window_is_accepted():
    assert validate_schedule(WEEKDAYS, 540, 1260, 90, 10) == []


def test_schedule_boundaries():
    assert "End time must be after start time" in validate_schedule(WEEKDAYS, 600, 600, 60, 10)
    assert "Duration should be at least 15 minutes" in validate_schedule(WEEKDAYS, 600, 610, 10, 10)
    assert "Rate cannot be negative" in validate_schedule(WEEKDAYS, 540, 600, 60, -1)
    assert "At least one weekday must be selected" in validate_schedule([], 540, 600, 60, 10)
    assert "Invalid weekday: 8. Must be 1-7 (Monday-Sunday)" in validate_schedule([8], 540, 600, 60, 10)


def test_facility_schedule_errors_are_numbered():
    errors = validate_facility_schedules(
        [
            {"weekdays": [1], "start_time": "09:00", "end_time": "10:00", "duration": 60, "rate": 5},
            {"weekdays": [1], "start_time": "9am", "end_time": "21:00", "duration": 60, "rate": 5},
        ]
    )

    assert errors == ["Schedule 2: Invalid start time format: 9am. Use HH:mm format"]


def test_facility_without_schedules_is_rejected():
    assert validate_facility_schedules([]) == ["At least one schedule is required"]


def test_time_parsing():
    assert parse_time("09:30") == 570
    assert parse_time("24:00") is None
    assert parse_time("noon") is None
    assert format_minutes(1260) == "21:00"


def test_email_normalization():
    assert normalize_email("  Ana@X.com ") == "ana@x.com"
    assert normalize_email("not-an-email") is None
    assert normalize_email("") is None


def test_schedule_model_enforces_the_window_invariant():
    with pytest.raises(ValidationError):
        Schedule(
            weekdays=[1],
            start_minute_of_day=540,
            end_minute_of_day=1260,
            slot_duration_minutes=50,
            rate_per_slot=10,
        )


def test_schedule_model_sorts_weekdays_and_renders_times():
    schedule = Schedule(
        weekdays=[5, 1, 1, 3],
        start_minute_of_day=540,
        end_minute_of_day=1260,
        slot_duration_minutes=90,
        rate_per_slot=12,
    )

    assert schedule.weekdays == [1, 3, 5]
    assert (schedule.start_time, schedule.end_time) == ("09:00", "21:00")
