import pytest
from sqlalchemy import event

from onboarding.models import ConversationStatus
from onboarding.repository import ConversationRepository
from onboarding.repository.conversation_repository import ConcurrentUpdateError
from onboarding.schemas.record import StructuredRecord


def interfere(engine, times):
    """Bump the stored version right before the next ``times`` record writes."""

    state = {"remaining": times}

    @event.listens_for(engine, "before_cursor_execute")
    def _bump_version(conn, cursor, statement, parameters, context, executemany):
        if state["remaining"] and statement.startswith("UPDATE conversations") and "collected_data" in statement:
            state["remaining"] -= 1
            cursor.execute("UPDATE conversations SET version = version + 1")

    return state


def rename(name):
    return lambda record: record.model_copy(update={"tenant_name": name})


def test_create_stores_an_empty_record(conversation_repository):
    conversation = conversation_repository.create("session-1", "en")

    assert conversation.status == ConversationStatus.ACTIVE.value
    assert conversation.version == 0
    assert conversation_repository.get_record(conversation.id) == StructuredRecord(language="en")


def test_unknown_conversation(conversation_repository):
    assert conversation_repository.get("missing") is None
    assert conversation_repository.get_record("missing") is None
    assert conversation_repository.merge_update("missing", rename("Club X")) is None
    assert conversation_repository.set_status("missing", ConversationStatus.ABANDONED) is False


def test_merge_update_persists_and_bumps_version(conversation_repository):
    conversation = conversation_repository.create("session-1", "es")

    updated = conversation_repository.merge_update(conversation.id, rename("Club X"))

    assert updated.tenant_name == "Club X"
    assert conversation_repository.get_record(conversation.id).tenant_name == "Club X"
    assert conversation_repository.get(conversation.id).version == 1


def test_merge_update_retries_after_a_lost_race(conversation_engine, conversation_repository):
    conversation = conversation_repository.create("session-1", "es")
    calls = []

    def updater(record):
        calls.append(record)
        return record.model_copy(update={"tenant_name": "Club X"})

    state = interfere(conversation_engine, times=1)
    updated = conversation_repository.merge_update(conversation.id, updater)

    assert state["remaining"] == 0
    assert len(calls) == 2
    assert updated.tenant_name == "Club X"
    assert conversation_repository.get(conversation.id).version == 2


def test_merge_update_gives_up_after_max_attempts(conversation_engine, conversation_sessions):
    repository = ConversationRepository(conversation_sessions, max_attempts=2)
    conversation = repository.create("session-1", "es")
    interfere(conversation_engine, times=10)

    with pytest.raises(ConcurrentUpdateError):
        repository.merge_update(conversation.id, rename("Club X"))

    assert repository.get_record(conversation.id).tenant_name is None


def test_set_status_and_language(conversation_repository):
    conversation = conversation_repository.create("session-1", "es")

    assert conversation_repository.set_status(
        conversation.id, ConversationStatus.COMPLETED, sports_center_id=7
    )
    conversation_repository.set_language(conversation.id, "en")

    stored = conversation_repository.get(conversation.id)
    assert stored.status == ConversationStatus.COMPLETED.value
    assert stored.sports_center_id == 7
    assert stored.language == "en"
