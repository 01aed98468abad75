from collections.abc import Iterator
from functools import lru_cache

from onboarding.clients import PlacesClient
from onboarding.core.database import (
    CONVERSATION_STORE,
    OPERATIONAL_STORE,
    get_session_factory,
)
from onboarding.repository import ConversationRepository, SportsCenterRepository
from onboarding.services import (
    AnalyticsService,
    CityResolver,
    ConversationService,
    EmailNotifier,
    ProvisioningService,
    SportCatalog,
    SportsCenterCreationService,
)


def get_operational_db() -> Iterator:
    db = get_session_factory(OPERATIONAL_STORE)()
    try:
        yield db
    finally:
        db.close()


@lru_cache()
def get_places_client() -> PlacesClient:
    return PlacesClient()


@lru_cache()
def get_sport_catalog() -> SportCatalog:
    return SportCatalog()


@lru_cache()
def get_notifier() -> EmailNotifier:
    return EmailNotifier()


def get_creation_service() -> SportsCenterCreationService:
    conversation_sessions = get_session_factory(CONVERSATION_STORE)
    return SportsCenterCreationService(
        conversations=ConversationRepository(conversation_sessions),
        sports_centers=SportsCenterRepository(conversation_sessions),
        provisioning=ProvisioningService(
            get_session_factory(OPERATIONAL_STORE),
            city_resolver=CityResolver(get_places_client()),
            sport_catalog=get_sport_catalog(),
        ),
        notifier=get_notifier(),
        analytics=AnalyticsService(conversation_sessions),
    )


def get_conversation_service() -> ConversationService:
    conversation_sessions = get_session_factory(CONVERSATION_STORE)
    return ConversationService(
        conversations=ConversationRepository(conversation_sessions),
        creation=get_creation_service(),
        analytics=AnalyticsService(conversation_sessions),
    )
