"""Resolve free-text city names against the gazetteer, growing it when needed.

Names are compared after normalization (lower case, no diacritics, single
spaces) using a Levenshtein based similarity score between 0 and 100.
A candidate is accepted when it is an exact match, scores at least 75, or is
the only candidate and scores at least 60. Several different names sharing
the best non-exact score are treated as ambiguous and a new city is created
under the given name instead of guessing.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from sqlalchemy.orm import Session

from onboarding.clients.places_client import PlaceDetails, PlacesClient, PlacesClientError
from onboarding.repository.geography_repository import GeographyRepository
from onboarding.schemas.provisioning import ResolvedCity

from .geo_data import default_country_name, default_currency, well_known_country

LOGGER = logging.getLogger(__name__)

EXACT_SIMILARITY = 100
FUZZY_THRESHOLD = 75
SINGLE_CANDIDATE_THRESHOLD = 60
PREFIX_LENGTH = 3

_COMBINING_MARKS = re.compile(r"[\u0300-\u036f]")
_WHITESPACE = re.compile(r"\s+")
_LIKE_WILDCARDS = set("aeiou%_\\")


def normalize_city_name(name: str) -> str:
    decomposed = unicodedata.normalize("NFD", name.lower())
    stripped = unicodedata.normalize("NFC", _COMBINING_MARKS.sub("", decomposed))
    return _WHITESPACE.sub(" ", stripped).strip()


def levenshtein_distance(a: str, b: str) -> int:
    if a == b:
        return 0
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(min(previous[j] + 1, current[j - 1] + 1, previous[j - 1] + cost))
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> int:
    """``round((1 - distance / max(len(a), len(b))) * 100)``, halves rounded up."""

    if a == b:
        return EXACT_SIMILARITY
    longest = max(len(a), len(b))
    if longest == 0:
        return EXACT_SIMILARITY
    score = (1 - levenshtein_distance(a, b) / longest) * 100
    return int(score + 0.5)


def infer_country(city_name: str) -> Optional[str]:
    """Best-effort country code for well-known city names."""

    return well_known_country(normalize_city_name(city_name))


def _mask(text: str) -> str:
    return "".join("_" if char in _LIKE_WILDCARDS else char for char in text)


def candidate_pattern(normalized_name: str) -> str:
    """LIKE pattern on a short prefix; vowels match any character so accents still hit."""

    return "%" + _mask(normalized_name[:PREFIX_LENGTH]) + "%"


def prefix_pattern(normalized_name: str) -> str:
    return _mask(normalized_name[:PREFIX_LENGTH]) + "%"


def exact_pattern(normalized_name: str) -> str:
    """LIKE pattern for the whole name, same length, any vowel accent."""

    return _mask(normalized_name)


@dataclass(frozen=True)
class CityMatch:
    city_id: int
    city_name: str
    province_id: int
    province_name: str
    country_id: Optional[int]
    country_code: Optional[str]
    country_name: Optional[str]
    currency: Optional[str]
    normalized_name: str
    distance: int
    similarity: int

    @classmethod
    def from_row(cls, row: Mapping, normalized_input: str) -> "CityMatch":
        normalized = normalize_city_name(row["city_name"])
        return cls(
            city_id=int(row["city_id"]),
            city_name=row["city_name"],
            province_id=int(row["province_id"]),
            province_name=row["province_name"],
            country_id=row.get("country_id"),
            country_code=row.get("country_code"),
            country_name=row.get("country_name"),
            currency=row.get("currency"),
            normalized_name=normalized,
            distance=levenshtein_distance(normalized_input, normalized),
            similarity=similarity(normalized_input, normalized),
        )


def select_best_match(candidates: List[CityMatch]) -> Optional[CityMatch]:
    """Apply the acceptance rules to candidates already sorted best first."""

    if not candidates:
        return None

    best = candidates[0]
    if best.similarity == EXACT_SIMILARITY:
        return best

    rivals = [
        candidate
        for candidate in candidates[1:]
        if candidate.similarity == best.similarity
        and candidate.normalized_name != best.normalized_name
    ]
    if rivals:
        LOGGER.info(
            "Ambiguous city match: %s and %s share similarity %s",
            best.city_name,
            ", ".join(rival.city_name for rival in rivals),
            best.similarity,
        )
        return None

    if best.similarity >= FUZZY_THRESHOLD:
        return best
    if len(candidates) == 1 and best.similarity >= SINGLE_CANDIDATE_THRESHOLD:
        return best
    return None


class CityResolver:
    """Find or create the city a sports center belongs to."""

    def __init__(self, places_client: Optional[PlacesClient] = None) -> None:
        self._places_client = places_client

    def resolve(
        self,
        db: Session,
        raw_city_name: str,
        raw_province_hint: Optional[str] = None,
        country_code: Optional[str] = None,
        place_hint: Optional[str] = None,
        language: str = "es",
    ) -> ResolvedCity:
        original_input = raw_city_name.strip()
        if not original_input:
            raise ValueError("City name must not be empty")

        city_name = original_input
        if place_hint:
            place = self._lookup_place(place_hint, language)
            if place is not None:
                city_name = place.name
                country_code = place.country_code or country_code

        effective_country = country_code.upper() if country_code else None
        if effective_country is None:
            effective_country = infer_country(city_name)
            if effective_country:
                LOGGER.info(
                    "[CityResolver] inferred country %s from city name %s",
                    effective_country,
                    city_name,
                )

        geography = GeographyRepository(db)
        match = self.find_best_match(geography, city_name, effective_country)
        if match is not None:
            return self._from_match(geography, match, original_input, effective_country)

        province_name = (raw_province_hint or "").strip() or city_name
        return self._create(geography, city_name, province_name, effective_country, original_input)

    def find_best_match(
        self,
        geography: GeographyRepository,
        city_name: str,
        country_code: Optional[str] = None,
    ) -> Optional[CityMatch]:
        normalized = normalize_city_name(city_name)
        exact = exact_pattern(normalized)
        rows = [
            row
            for row in geography.find_city_candidates(exact, country_code)
            if normalize_city_name(row["city_name"]) == normalized
        ]
        if not rows:
            rows = geography.find_city_candidates(
                candidate_pattern(normalized),
                country_code,
                exact_pattern=exact,
                prefix_pattern=prefix_pattern(normalized),
            )
        candidates = sorted(
            (CityMatch.from_row(row, normalized) for row in rows),
            key=lambda candidate: (-candidate.similarity, candidate.city_id),
        )
        match = select_best_match(candidates)
        if match is not None:
            LOGGER.info(
                "[CityResolver] matched %r to %r (similarity=%s, distance=%s)",
                city_name,
                match.city_name,
                match.similarity,
                match.distance,
            )
        return match

    def city_exists(self, db: Session, city_name: str, province_name: Optional[str] = None) -> bool:
        return GeographyRepository(db).city_exists(city_name, province_name)

    def _lookup_place(self, place_id: str, language: str) -> Optional[PlaceDetails]:
        if self._places_client is None:
            return None
        try:
            return self._places_client.get_place_details(place_id, language)
        except PlacesClientError as exc:
            LOGGER.warning(
                "[CityResolver] place lookup for %s failed (%s); using fuzzy matching",
                place_id,
                exc.code,
            )
            return None
        except Exception:
            LOGGER.exception(
                "[CityResolver] unexpected error looking up place %s; using fuzzy matching",
                place_id,
            )
            return None

    def _from_match(
        self,
        geography: GeographyRepository,
        match: CityMatch,
        original_input: str,
        country_code: Optional[str],
    ) -> ResolvedCity:
        corrected = normalize_city_name(original_input) != match.normalized_name
        if corrected:
            LOGGER.info("[CityResolver] corrected city %r to %r", original_input, match.city_name)

        country_id, country_name, currency = match.country_id, match.country_name, match.currency
        if country_id is None and country_code:
            country_id, country_name, currency = self._get_or_create_country(geography, country_code)
            if geography.link_city_to_country(match.city_id, country_id):
                LOGGER.info(
                    "[CityResolver] linked existing city %s to country %s",
                    match.city_id,
                    country_code,
                )

        return ResolvedCity(
            city_id=match.city_id,
            canonical_name=match.city_name,
            province_id=match.province_id,
            province_name=match.province_name,
            country_id=country_id,
            country_name=country_name,
            currency_code=currency,
            was_created=False,
            corrected_from=original_input if corrected else None,
            original_input=original_input,
        )

    def _create(
        self,
        geography: GeographyRepository,
        city_name: str,
        province_name: str,
        country_code: Optional[str],
        original_input: str,
    ) -> ResolvedCity:
        country_id = country_name = currency = None
        if country_code:
            country_id, country_name, currency = self._get_or_create_country(geography, country_code)
        else:
            LOGGER.warning(
                "[CityResolver] creating city %r without a country", city_name
            )

        province_id = geography.find_province_id(province_name)
        if province_id is None:
            province_id = geography.insert_province(province_name)
            LOGGER.info("[CityResolver] created province %r (id=%s)", province_name, province_id)

        city_id = geography.insert_city(city_name, province_id, country_id)
        LOGGER.info(
            "[CityResolver] created city %r (id=%s, province=%s, country=%s)",
            city_name,
            city_id,
            province_id,
            country_code,
        )

        corrected = normalize_city_name(original_input) != normalize_city_name(city_name)
        return ResolvedCity(
            city_id=city_id,
            canonical_name=city_name,
            province_id=province_id,
            province_name=province_name,
            country_id=country_id,
            country_name=country_name,
            currency_code=currency,
            was_created=True,
            corrected_from=original_input if corrected else None,
            original_input=original_input,
        )

    @staticmethod
    def _get_or_create_country(
        geography: GeographyRepository, country_code: str
    ) -> Tuple[int, str, Optional[str]]:
        existing = geography.find_country(country_code)
        if existing is not None:
            return int(existing["id"]), existing["name"], existing.get("currency")

        name = default_country_name(country_code)
        currency = default_currency(country_code)
        country_id = geography.insert_country(country_code, name, currency)
        LOGGER.info(
            "[CityResolver] created country %s (%s, %s) id=%s",
            country_code.upper(),
            name,
            currency,
            country_id,
        )
        return country_id, name, currency


__all__ = [
    "CityMatch",
    "CityResolver",
    "candidate_pattern",
    "exact_pattern",
    "infer_country",
    "levenshtein_distance",
    "normalize_city_name",
    "prefix_pattern",
    "select_best_match",
    "similarity",
]
