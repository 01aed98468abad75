"""Parameterized gazetteer queries against the operational store.

Older deployments have no ``cities.country_id`` column; every statement that
touches it checks :attr:`GeographyRepository.supports_country_link` first.
"""

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from onboarding.core.database import DatabaseError

LOGGER = logging.getLogger(__name__)

CANDIDATE_LIMIT = 100

_CANDIDATES_WITH_COUNTRY = """
    SELECT
        c.id AS city_id,
        c.name AS city_name,
        p.id AS province_id,
        p.name AS province_name,
        co.id AS country_id,
        co.code AS country_code,
        co.name AS country_name,
        co.currency AS currency
    FROM cities c
    JOIN provinces p ON c.province_id = p.id
    LEFT JOIN countries co ON c.country_id = co.id
    WHERE LOWER(c.name) LIKE :pattern
"""

_CANDIDATES_WITHOUT_COUNTRY = """
    SELECT
        c.id AS city_id,
        c.name AS city_name,
        p.id AS province_id,
        p.name AS province_name,
        NULL AS country_id,
        NULL AS country_code,
        NULL AS country_name,
        NULL AS currency
    FROM cities c
    JOIN provinces p ON c.province_id = p.id
    WHERE LOWER(c.name) LIKE :pattern
"""


class GeographyRepository:
    """Countries, provinces and cities of the operational store."""

    def __init__(self, db: Session) -> None:
        self._db = db
        self._country_link: Optional[bool] = None

    @property
    def supports_country_link(self) -> bool:
        if self._country_link is None:
            try:
                columns = inspect(self._db.connection()).get_columns("cities")
            except SQLAlchemyError as exc:
                raise DatabaseError(str(exc)) from exc
            self._country_link = any(column["name"] == "country_id" for column in columns)
            if not self._country_link:
                LOGGER.warning(
                    "[GeographyRepository] cities table has no country_id column; "
                    "cities will not be linked to countries"
                )
        return self._country_link

    def _execute(self, statement: str, params: Mapping[str, Any]):
        try:
            return self._db.execute(text(statement), dict(params))
        except SQLAlchemyError as exc:
            raise DatabaseError(str(exc)) from exc

    def find_city_candidates(
        self,
        pattern: str,
        country_code: Optional[str] = None,
        *,
        exact_pattern: Optional[str] = None,
        prefix_pattern: Optional[str] = None,
    ) -> List[Mapping[str, Any]]:
        """Cities whose lower-cased name matches ``pattern``.

        With a country code, cities linked to another country are excluded but
        cities with no country at all are kept so they can be linked later.
        Rows matching ``exact_pattern`` come first, then rows matching
        ``prefix_pattern``, so the limit never drops the closest names.
        """

        params: dict[str, Any] = {
            "pattern": pattern,
            "exact": exact_pattern or pattern,
            "prefix": prefix_pattern or pattern,
            "limit": CANDIDATE_LIMIT,
        }
        if self.supports_country_link:
            statement = _CANDIDATES_WITH_COUNTRY
            if country_code:
                statement += " AND (co.code = :country_code OR c.country_id IS NULL)"
                params["country_code"] = country_code.upper()
        else:
            statement = _CANDIDATES_WITHOUT_COUNTRY
        statement += (
            " ORDER BY (LOWER(c.name) LIKE :exact) DESC,"
            " (LOWER(c.name) LIKE :prefix) DESC, c.id"
            " LIMIT :limit"
        )
        rows = self._execute(statement, params).mappings().all()
        return [dict(row) for row in rows]

    def find_country(self, code: str) -> Optional[Mapping[str, Any]]:
        row = self._execute(
            "SELECT id, code, name, currency FROM countries WHERE code = :code LIMIT 1",
            {"code": code.upper()},
        ).mappings().first()
        return dict(row) if row else None

    def insert_country(self, code: str, name: str, currency: str) -> int:
        result = self._execute(
            "INSERT INTO countries (code, name, currency) VALUES (:code, :name, :currency)",
            {"code": code.upper(), "name": name, "currency": currency},
        )
        return int(result.lastrowid)

    def find_province_id(self, name: str) -> Optional[int]:
        value = self._execute(
            "SELECT id FROM provinces WHERE name = :name LIMIT 1", {"name": name}
        ).scalar()
        return int(value) if value is not None else None

    def insert_province(self, name: str) -> int:
        result = self._execute("INSERT INTO provinces (name) VALUES (:name)", {"name": name})
        return int(result.lastrowid)

    def insert_city(self, name: str, province_id: int, country_id: Optional[int] = None) -> int:
        if country_id is not None and self.supports_country_link:
            result = self._execute(
                "INSERT INTO cities (name, province_id, country_id) "
                "VALUES (:name, :province_id, :country_id)",
                {"name": name, "province_id": province_id, "country_id": country_id},
            )
        else:
            result = self._execute(
                "INSERT INTO cities (name, province_id) VALUES (:name, :province_id)",
                {"name": name, "province_id": province_id},
            )
        return int(result.lastrowid)

    def link_city_to_country(self, city_id: int, country_id: int) -> bool:
        if not self.supports_country_link:
            LOGGER.warning(
                "[GeographyRepository] cannot link city %s to country %s without country_id column",
                city_id,
                country_id,
            )
            return False
        self._execute(
            "UPDATE cities SET country_id = :country_id WHERE id = :city_id",
            {"country_id": country_id, "city_id": city_id},
        )
        return True

    def city_exists(self, name: str, province_name: Optional[str] = None) -> bool:
        if province_name:
            value = self._execute(
                "SELECT c.id FROM cities c JOIN provinces p ON c.province_id = p.id "
                "WHERE c.name = :name AND p.name = :province LIMIT 1",
                {"name": name, "province": province_name},
            ).scalar()
        else:
            value = self._execute(
                "SELECT id FROM cities WHERE name = :name LIMIT 1", {"name": name}
            ).scalar()
        return value is not None


__all__ = ["CANDIDATE_LIMIT", "GeographyRepository"]
