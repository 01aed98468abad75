from typing import List

import pytest
from sqlalchemy import select, update

from onboarding.models import AnalyticsEvent, Conversation, ConversationStatus, SportsCenter
from onboarding.models.operational import Sportcenter
from onboarding.repository import SportsCenterRepository
from onboarding.schemas.record import Facility, Schedule
from onboarding.services import NotificationResult, SportsCenterCreationService
from onboarding.services.creation_service import (
    CONVERSATION_NOT_FOUND,
    INCOMPLETE_DATA,
    NO_DATA,
    NO_FACILITIES,
    NOT_CONFIRMED,
    RETRY_MESSAGE,
    build_request,
    extract_province,
    is_retryable,
)
from onboarding.services.provisioning_service import (
    SPORT_NOT_FOUND,
    TIMEOUT,
    ProvisioningError,
)

from conftest import FakeNotifier, club_x_record


def event_types(sessions, conversation_id: str) -> List[str]:
    with sessions() as session:
        return list(
            session.execute(
                select(AnalyticsEvent.event_type)
                .where(AnalyticsEvent.conversation_id == conversation_id)
                .order_by(AnalyticsEvent.id)
            ).scalars()
        )


def count_tenants(sessions) -> int:
    with sessions() as session:
        return len(session.execute(select(Sportcenter.id)).all())


def store(conversation_repository, conversation_id, record):
    conversation_repository.merge_update(conversation_id, lambda _: record)


class TimingOutProvisioning:
    def find_by_reference(self, reference):
        return None

    def create(self, request):
        raise ProvisioningError("Operational database timed out", code=TIMEOUT, retryable=True)


def service_with(conversation_sessions, conversation_repository, analytics, provisioning, notifier):
    return SportsCenterCreationService(
        conversations=conversation_repository,
        sports_centers=SportsCenterRepository(conversation_sessions),
        provisioning=provisioning,
        notifier=notifier,
        analytics=analytics,
    )


# ----------------------------------------------------------------------
# Happy path and idempotency
# ----------------------------------------------------------------------
def test_creation_succeeds_and_completes_the_conversation(
    creation_service, ready_conversation, conversation_repository, conversation_sessions, notifier
):
    result = creation_service.create_from_conversation(ready_conversation.id)

    assert result.success is True
    created = result.sports_center
    assert created.name == "Club X"
    assert created.admin_email == "ana@x.com"
    assert created.admin_login.startswith("ana")
    assert created.admin_password

    conversation = conversation_repository.get(ready_conversation.id)
    assert conversation.status == ConversationStatus.COMPLETED.value
    assert conversation.sports_center_id == created.id

    assert len(notifier.sent) == 1
    email = notifier.sent[0]
    assert email["admin_email"] == "ana@x.com"
    assert email["admin_password"] == created.admin_password
    assert email["city"] == "Madrid"
    assert email["facilities"] == [{"name": "Court 1", "sport_name": "Padel"}]

    assert event_types(conversation_sessions, ready_conversation.id) == [
        "sports_center_created",
        "conversation_completed",
        "email_sent",
    ]


def test_second_call_returns_the_same_sports_center(
    creation_service, ready_conversation, operational_sessions, notifier
):
    first = creation_service.create_from_conversation(ready_conversation.id)
    second = creation_service.create_from_conversation(ready_conversation.id)

    assert second.success is True
    assert second.sports_center.external_id == first.sports_center.external_id
    assert second.sports_center.id == first.sports_center.id
    assert second.sports_center.admin_password is None
    assert count_tenants(operational_sessions) == 1
    assert len(notifier.sent) == 1


def test_tenant_created_before_a_crash_is_backfilled(
    creation_service,
    provisioning_service,
    ready_conversation,
    conversation_repository,
    conversation_sessions,
    operational_sessions,
    notifier,
):
    provisioned = provisioning_service.create(build_request(ready_conversation.id, club_x_record()))

    result = creation_service.create_from_conversation(ready_conversation.id)

    assert result.success is True
    assert result.sports_center.external_id == provisioned.tenant_id
    assert result.sports_center.admin_password is None
    assert count_tenants(operational_sessions) == 1
    assert notifier.sent == []
    with conversation_sessions() as session:
        summary = session.execute(select(SportsCenter)).scalar_one()
        assert summary.admin_login == provisioned.admin_login
        assert summary.facilities_count == 1
    conversation = conversation_repository.get(ready_conversation.id)
    assert conversation.status == ConversationStatus.COMPLETED.value


# ----------------------------------------------------------------------
# Validation
# ----------------------------------------------------------------------
def test_unknown_conversation(creation_service):
    result = creation_service.create_from_conversation("missing")

    assert result.success is False
    assert result.error.code == CONVERSATION_NOT_FOUND
    assert result.error.retryable is False


def test_conversation_without_data(creation_service, conversation_repository, conversation_sessions):
    conversation = conversation_repository.create("session-1", "es")
    with conversation_sessions.begin() as session:
        session.execute(
            update(Conversation).where(Conversation.id == conversation.id).values(collected_data=None)
        )

    result = creation_service.create_from_conversation(conversation.id)

    assert result.error.code == NO_DATA


def test_malformed_stored_data_is_a_fatal_error(
    creation_service, conversation_repository, conversation_sessions, operational_sessions
):
    conversation = conversation_repository.create("session-1", "es")
    with conversation_sessions.begin() as session:
        session.execute(
            update(Conversation)
            .where(Conversation.id == conversation.id)
            .values(collected_data={"facilities": "bad", "confirmed": True})
        )

    result = creation_service.create_from_conversation(conversation.id)

    assert result.success is False
    assert result.error.code == NO_DATA
    assert result.error.retryable is False
    assert count_tenants(operational_sessions) == 0


def test_unconfirmed_record_is_rejected(creation_service, conversation_repository):
    conversation = conversation_repository.create("session-1", "es")
    store(conversation_repository, conversation.id, club_x_record(confirmed=False))

    result = creation_service.create_from_conversation(conversation.id)

    assert result.error.code == NOT_CONFIRMED


def test_incomplete_record_names_missing_fields(creation_service, conversation_repository):
    conversation = conversation_repository.create("session-1", "es")
    store(conversation_repository, conversation.id, club_x_record(admin_email=None))

    result = creation_service.create_from_conversation(conversation.id)

    assert result.error.code == INCOMPLETE_DATA
    assert result.error.message == "missing: adminEmail"


def test_record_without_facilities(creation_service, conversation_repository, operational_sessions):
    conversation = conversation_repository.create("session-1", "es")
    store(conversation_repository, conversation.id, club_x_record(facilities=[]))

    result = creation_service.create_from_conversation(conversation.id)

    assert result.error.code == NO_FACILITIES
    assert count_tenants(operational_sessions) == 0


# ----------------------------------------------------------------------
# Provisioning failures
# ----------------------------------------------------------------------
def test_fatal_failure_records_last_error(
    creation_service, conversation_repository, conversation_sessions, operational_sessions
):
    curling = Facility(
        name="Ice rink",
        sport_id=99,
        sport_name="Curling",
        schedules=[
            Schedule(
                weekdays=[6, 7],
                start_minute_of_day=600,
                end_minute_of_day=720,
                slot_duration_minutes=60,
                rate_per_slot=20,
            )
        ],
    )
    conversation = conversation_repository.create("session-1", "es")
    store(conversation_repository, conversation.id, club_x_record(facilities=[curling]))

    first = creation_service.create_from_conversation(conversation.id)
    second = creation_service.create_from_conversation(conversation.id)

    assert first.error.code == SPORT_NOT_FOUND
    assert first.error.message == "Sport not found: Curling"
    assert first.error.retryable is False
    assert second.error.code == SPORT_NOT_FOUND

    record = conversation_repository.get_record(conversation.id)
    assert record.last_error.code == SPORT_NOT_FOUND
    assert record.last_error.retry_count == 2
    assert conversation_repository.get(conversation.id).status == ConversationStatus.ACTIVE.value
    assert count_tenants(operational_sessions) == 0
    assert event_types(conversation_sessions, conversation.id).count("sports_center_failed") == 2


def test_transient_failure_returns_generic_message(
    conversation_sessions, conversation_repository, analytics, ready_conversation
):
    service = service_with(
        conversation_sessions, conversation_repository, analytics, TimingOutProvisioning(), FakeNotifier()
    )

    result = service.create_from_conversation(ready_conversation.id)

    assert result.success is False
    assert result.error.code == TIMEOUT
    assert result.error.retryable is True
    assert result.error.message == RETRY_MESSAGE
    assert conversation_repository.get_record(ready_conversation.id).last_error.retry_count == 1


# ----------------------------------------------------------------------
# Welcome email
# ----------------------------------------------------------------------
@pytest.mark.parametrize(
    "notifier",
    [
        FakeNotifier(
            NotificationResult(success=False, error_code="SEND_FAILED", error_message="smtp down")
        ),
        FakeNotifier(error=RuntimeError("template exploded")),
    ],
)
def test_email_failure_does_not_fail_creation(
    conversation_sessions,
    conversation_repository,
    analytics,
    provisioning_service,
    ready_conversation,
    notifier,
):
    service = service_with(
        conversation_sessions, conversation_repository, analytics, provisioning_service, notifier
    )

    result = service.create_from_conversation(ready_conversation.id)

    assert result.success is True
    assert "email_failed" in event_types(conversation_sessions, ready_conversation.id)
    assert conversation_repository.get(ready_conversation.id).status == ConversationStatus.COMPLETED.value


# ----------------------------------------------------------------------
# Request mapping
# ----------------------------------------------------------------------
def test_extract_province():
    assert extract_province("Getafe, Madrid") == ("Getafe", "Madrid")
    assert extract_province("Getafe (Madrid)") == ("Getafe", "Madrid")
    assert extract_province("Madrid") == ("Madrid", "Madrid")


def test_build_request_formats_decimal_strings():
    request = build_request("conv-1", club_x_record(city="Getafe, Madrid", tenant_name="  Club X "))

    assert request.reference == "conv-1"
    assert request.name == "Club X"
    assert (request.city, request.province) == ("Getafe", "Madrid")
    schedule = request.facilities[0].schedules[0]
    assert schedule.duration_hours == "1.50"
    assert schedule.rate == "12.00"
    assert (schedule.time_start, schedule.time_end) == ("09:00", "21:00")


def test_retryable_classification():
    assert is_retryable(ProvisioningError("x", code="OTHER", retryable=False, status_code=503))
    assert is_retryable(ProvisioningError("x", code=TIMEOUT, retryable=False))
    assert not is_retryable(ProvisioningError("x", code=SPORT_NOT_FOUND, retryable=False))
