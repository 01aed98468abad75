"""Sports known to the operational store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from onboarding.core.cache import TTLCache
from onboarding.core.config import settings
from onboarding.core.database import DatabaseError
from onboarding.repository import tenant_repository

LOGGER = logging.getLogger(__name__)

_CACHE_KEY = "sports"


@dataclass(frozen=True)
class SportEntry:
    id: int
    name: str


class SportCatalog:
    """Sport lookups. The listing is cached; resolution inside a transaction never is."""

    def __init__(self, cache: Optional[TTLCache[List[SportEntry]]] = None) -> None:
        self._cache = cache if cache is not None else TTLCache(settings.SPORTS_CACHE_TTL_SECONDS)

    def list_sports(self, db: Session) -> List[SportEntry]:
        def _load() -> List[SportEntry]:
            LOGGER.info("[SportCatalog] loading sports from the operational store")
            try:
                sports = tenant_repository.list_sports(db)
            except SQLAlchemyError as exc:
                raise DatabaseError(str(exc)) from exc
            return [SportEntry(id=sport.id, name=sport.name) for sport in sports]

        return self._cache.get_or_load(_CACHE_KEY, _load)

    def resolve_sport_id(
        self, db: Session, sport_id: Optional[int], sport_name: Optional[str]
    ) -> Optional[int]:
        """Return an existing sport id, by id first and then by name."""

        if sport_id is not None:
            sport = tenant_repository.get_sport(db, sport_id)
            if sport is not None:
                return sport.id
            LOGGER.warning("[SportCatalog] sport id %s does not exist", sport_id)
        if sport_name and sport_name.strip():
            sport = tenant_repository.find_sport_by_name(db, sport_name)
            if sport is not None:
                return sport.id
        return None

    def invalidate(self) -> None:
        self._cache.invalidate(_CACHE_KEY)


__all__ = ["SportCatalog", "SportEntry"]
