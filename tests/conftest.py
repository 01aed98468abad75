from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from onboarding.core.cache import TTLCache
from onboarding.models import ConversationBase
from onboarding.models.operational import OperationalBase, Sport
from onboarding.repository import ConversationRepository, SportsCenterRepository
from onboarding.schemas.record import Facility, Schedule, StructuredRecord
from onboarding.services import (
    AnalyticsService,
    CityResolver,
    ConversationService,
    NotificationResult,
    ProvisioningService,
    SportCatalog,
    SportsCenterCreationService,
)

FIXED_NOW = datetime(2024, 1, 31, 10, 0, 0)


def sqlite_engine() -> Engine:
    """In-memory SQLite shared across threads, with working SAVEPOINTs."""

    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    return engine


class FakeNotifier:
    def __init__(self, result: Optional[NotificationResult] = None, error: Optional[Exception] = None):
        self.result = result or NotificationResult(success=True, message_id="<welcome@test>")
        self.error = error
        self.sent: List[Dict[str, Any]] = []

    def send(self, admin_email: str, template_data: Mapping[str, Any]) -> NotificationResult:
        self.sent.append({"admin_email": admin_email, **template_data})
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def conversation_engine():
    engine = sqlite_engine()
    ConversationBase.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def conversation_sessions(conversation_engine):
    return sessionmaker(bind=conversation_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def operational_engine():
    engine = sqlite_engine()
    OperationalBase.metadata.create_all(engine)
    with engine.begin() as connection:
        connection.execute(
            Sport.__table__.insert(),
            [
                {"id": 1, "name": "Padel"},
                {"id": 2, "name": "Tenis"},
                {"id": 3, "name": "Fútbol 7"},
            ],
        )
    yield engine
    engine.dispose()


@pytest.fixture
def operational_sessions(operational_engine):
    return sessionmaker(bind=operational_engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def sport_catalog():
    return SportCatalog(TTLCache(60))


@pytest.fixture
def provisioning_service(operational_sessions, sport_catalog):
    return ProvisioningService(
        operational_sessions,
        city_resolver=CityResolver(),
        sport_catalog=sport_catalog,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def conversation_repository(conversation_sessions):
    return ConversationRepository(conversation_sessions)


@pytest.fixture
def analytics(conversation_sessions):
    return AnalyticsService(conversation_sessions)


@pytest.fixture
def creation_service(conversation_sessions, conversation_repository, provisioning_service, notifier, analytics):
    return SportsCenterCreationService(
        conversations=conversation_repository,
        sports_centers=SportsCenterRepository(conversation_sessions),
        provisioning=provisioning_service,
        notifier=notifier,
        analytics=analytics,
    )


@pytest.fixture
def conversation_service(conversation_repository, creation_service, analytics):
    return ConversationService(
        conversations=conversation_repository,
        creation=creation_service,
        analytics=analytics,
    )


def club_x_record(**overrides: Any) -> StructuredRecord:
    values: Dict[str, Any] = {
        "tenant_name": "Club X",
        "city": "Madrid",
        "admin_name": "Ana",
        "admin_email": "ana@x.com",
        "facilities": [
            Facility(
                name="Court 1",
                sport_id=1,
                sport_name="Padel",
                schedules=[
                    Schedule(
                        weekdays=[1, 2, 3, 4, 5],
                        start_minute_of_day=540,
                        end_minute_of_day=1260,
                        slot_duration_minutes=90,
                        rate_per_slot=12,
                    )
                ],
            )
        ],
        "confirmed": True,
        "language": "es",
    }
    values.update(overrides)
    return StructuredRecord(**values)


@pytest.fixture
def ready_conversation(conversation_repository):
    """A conversation whose record is complete and confirmed."""

    conversation = conversation_repository.create("session-1", "es")
    conversation_repository.merge_update(conversation.id, lambda _: club_x_record())
    return conversation
