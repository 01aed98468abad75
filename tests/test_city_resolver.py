from typing import Optional

import pytest
from sqlalchemy import func, select, text
from sqlalchemy.orm import sessionmaker

from onboarding.clients.places_client import PlaceDetails, PlacesClientError
from onboarding.models.operational import City, Country, Province
from onboarding.services.city_resolver import (
    CityMatch,
    CityResolver,
    candidate_pattern,
    exact_pattern,
    infer_country,
    levenshtein_distance,
    normalize_city_name,
    prefix_pattern,
    select_best_match,
    similarity,
)

from conftest import sqlite_engine


def seed_city(session, name: str, province: str, country: Optional[Country] = None) -> City:
    province_row = session.execute(select(Province).where(Province.name == province)).scalar_one_or_none()
    if province_row is None:
        province_row = Province(name=province)
        session.add(province_row)
        session.flush()
    city = City(name=name, province_id=province_row.id, country_id=country.id if country else None)
    session.add(city)
    session.flush()
    return city


def match(city_id: int, name: str, score: int) -> CityMatch:
    return CityMatch(
        city_id=city_id,
        city_name=name,
        province_id=1,
        province_name="P",
        country_id=None,
        country_code=None,
        country_name=None,
        currency=None,
        normalized_name=normalize_city_name(name),
        distance=0,
        similarity=score,
    )


class StaticPlaces:
    def __init__(self, place: Optional[PlaceDetails] = None, error: Optional[Exception] = None):
        self.place = place
        self.error = error
        self.calls = []

    def get_place_details(self, place_id, language="es"):
        self.calls.append((place_id, language))
        if self.error is not None:
            raise self.error
        return self.place


@pytest.fixture
def session(operational_sessions):
    db = operational_sessions()
    yield db
    db.rollback()
    db.close()


# ----------------------------------------------------------------------
# Pure helpers
# ----------------------------------------------------------------------
def test_normalization_strips_accents_and_is_idempotent():
    assert normalize_city_name("Córdoba") == normalize_city_name("CORDOBA") == "cordoba"
    assert normalize_city_name("  San   Sebastián ") == "san sebastian"
    once = normalize_city_name("Ciudad de MÉXICO")
    assert normalize_city_name(once) == once


def test_normalization_keeps_non_latin_scripts():
    assert normalize_city_name("서울") == "서울"


def test_similarity_scores():
    assert levenshtein_distance("madrd", "madrid") == 1
    assert similarity("madrd", "madrid") == 83
    assert similarity("madrid", "madrid") == 100
    assert similarity("abc", "xyz") == 0


def test_candidate_pattern_masks_vowels():
    assert candidate_pattern("cordoba") == "%c_r%"
    assert candidate_pattern("10%") == "%10_%"
    assert prefix_pattern("cordoba") == "c_r%"
    assert exact_pattern("cordoba") == "c_rd_b_"


def test_country_inference():
    assert infer_country("Barcelona") == "ES"
    assert infer_country("Málaga") == "ES"
    assert infer_country("Greater London") == "GB"
    assert infer_country("Nordkapp") is None


def test_acceptance_rules():
    assert select_best_match([]) is None
    assert select_best_match([match(1, "Madrid", 100), match(2, "Madrid", 100)]).city_id == 1
    assert select_best_match([match(1, "Madrid", 83), match(2, "Mostoles", 20)]).city_id == 1
    assert select_best_match([match(1, "Getafe", 62)]).city_id == 1
    assert select_best_match([match(1, "Getafe", 62), match(2, "Leganes", 10)]) is None
    assert select_best_match([match(1, "Mara", 75), match(2, "Marb", 75)]) is None


# ----------------------------------------------------------------------
# Resolution against the gazetteer
# ----------------------------------------------------------------------
def test_typo_resolves_to_existing_city(session):
    madrid = seed_city(session, "Madrid", "Madrid")

    resolved = CityResolver().resolve(session, "Madrd")

    assert resolved.city_id == madrid.id
    assert resolved.was_created is False
    assert resolved.corrected_from == "Madrd"
    assert resolved.canonical_name == "Madrid"


def test_accented_name_matches_unaccented_input(session):
    cordoba = seed_city(session, "Córdoba", "Córdoba")

    resolved = CityResolver().resolve(session, "CORDOBA")

    assert resolved.city_id == cordoba.id
    assert resolved.corrected_from is None


def test_unknown_city_is_created(session):
    resolved = CityResolver().resolve(session, "Nordkapp")

    assert resolved.was_created is True
    assert resolved.province_name == "Nordkapp"
    assert resolved.country_id is None
    assert session.get(City, resolved.city_id).name == "Nordkapp"


def test_created_city_gets_country_with_defaults(session):
    resolved = CityResolver().resolve(session, "Tomelloso", "Ciudad Real", country_code="es")

    country = session.get(Country, resolved.country_id)
    assert resolved.was_created
    assert (country.code, country.name, country.currency) == ("ES", "España", "EUR")
    assert resolved.currency_code == "EUR"
    assert resolved.province_name == "Ciudad Real"
    assert session.get(City, resolved.city_id).country_id == country.id


def test_unknown_country_code_defaults(session):
    resolved = CityResolver().resolve(session, "Reykjavik", country_code="IS")

    assert resolved.country_name == "IS"
    assert resolved.currency_code == "EUR"


def test_existing_province_is_reused(session):
    seed_city(session, "Sevilla", "Andalucía")

    resolved = CityResolver().resolve(session, "Huelva", "Andalucía", country_code="ES")

    assert resolved.was_created
    assert session.execute(select(func.count(Province.id))).scalar_one() == 1


def test_city_without_country_is_healed_on_read(session):
    madrid = seed_city(session, "Madrid", "Madrid")

    resolved = CityResolver().resolve(session, "Madrid", country_code="ES")

    session.refresh(madrid)
    assert resolved.was_created is False
    assert madrid.country_id == resolved.country_id
    assert resolved.country_name == "España"


def test_cities_of_other_countries_are_not_candidates(session):
    portugal = Country(code="PT", name="Portugal", currency="EUR")
    session.add(portugal)
    session.flush()
    seed_city(session, "Valencia", "Valencia", portugal)

    resolved = CityResolver().resolve(session, "Valencia", country_code="ES")

    assert resolved.was_created is True


def test_ambiguous_match_creates_a_new_city(session):
    seed_city(session, "Mara", "Province")
    seed_city(session, "Marb", "Province")

    resolved = CityResolver().resolve(session, "Marc")

    assert resolved.was_created is True
    assert session.execute(select(func.count(City.id))).scalar_one() == 3


def test_place_hint_takes_precedence(session):
    madrid = seed_city(session, "Madrid", "Madrid")
    places = StaticPlaces(
        PlaceDetails(
            place_id="abc",
            name="Madrid",
            formatted_address="Madrid, Spain",
            country_name="Spain",
            country_code="ES",
        )
    )

    resolved = CityResolver(places).resolve(session, "the capital", place_hint="abc", language="en")

    assert places.calls == [("abc", "en")]
    assert resolved.city_id == madrid.id
    assert resolved.corrected_from == "the capital"


def test_failed_place_lookup_falls_back_to_fuzzy_matching(session):
    madrid = seed_city(session, "Madrid", "Madrid")
    places = StaticPlaces(error=PlacesClientError("boom", code="TIMEOUT"))

    resolved = CityResolver(places).resolve(session, "Madrid", place_hint="abc")

    assert resolved.city_id == madrid.id


def test_unexpected_place_lookup_error_falls_back_to_fuzzy_matching(session):
    madrid = seed_city(session, "Madrid", "Madrid")
    places = StaticPlaces(error=ValueError("could not convert string to float: 'n/a'"))

    resolved = CityResolver(places).resolve(session, "Madrid", place_hint="abc")

    assert places.calls == [("abc", "es")]
    assert resolved.city_id == madrid.id
    assert resolved.was_created is False


def test_exact_city_is_found_among_many_look_alikes(session):
    for index in range(120):
        seed_city(session, f"Almodovar {index}", "Ciudad Real")
    madrid = seed_city(session, "Madrid", "Madrid")

    resolved = CityResolver().resolve(session, "Madrid")

    assert resolved.city_id == madrid.id
    assert resolved.was_created is False
    count = session.execute(select(func.count(City.id)).where(City.name == "Madrid")).scalar_one()
    assert count == 1


def test_typo_is_found_among_many_look_alikes(session):
    for index in range(120):
        seed_city(session, f"Almodovar {index}", "Ciudad Real")
    madrid = seed_city(session, "Madrid", "Madrid")

    resolved = CityResolver().resolve(session, "Madrld")

    assert resolved.city_id == madrid.id
    assert resolved.corrected_from == "Madrld"


def test_exact_lookup_ignores_accents(session):
    for index in range(120):
        seed_city(session, f"Escorial {index}", "Madrid")
    cordoba = seed_city(session, "Córdoba", "Córdoba")

    resolved = CityResolver().resolve(session, "Cordoba")

    assert resolved.city_id == cordoba.id
    assert resolved.was_created is False


def test_empty_city_name_is_rejected(session):
    with pytest.raises(ValueError):
        CityResolver().resolve(session, "   ")


def test_city_exists(session):
    seed_city(session, "Sevilla", "Andalucía")
    resolver = CityResolver()

    assert resolver.city_exists(session, "Sevilla")
    assert resolver.city_exists(session, "Sevilla", "Andalucía")
    assert not resolver.city_exists(session, "Sevilla", "Madrid")


# ----------------------------------------------------------------------
# Schema without cities.country_id
# ----------------------------------------------------------------------
@pytest.fixture
def legacy_session():
    engine = sqlite_engine()
    with engine.begin() as connection:
        connection.exec_driver_sql(
            "CREATE TABLE countries (id INTEGER PRIMARY KEY AUTOINCREMENT, code VARCHAR(2), "
            "name VARCHAR(100), currency VARCHAR(3))"
        )
        connection.exec_driver_sql(
            "CREATE TABLE provinces (id INTEGER PRIMARY KEY AUTOINCREMENT, name VARCHAR(255))"
        )
        connection.exec_driver_sql(
            "CREATE TABLE cities (id INTEGER PRIMARY KEY AUTOINCREMENT, name VARCHAR(255), "
            "province_id INTEGER)"
        )
        connection.exec_driver_sql("INSERT INTO provinces (name) VALUES ('Madrid')")
        connection.exec_driver_sql("INSERT INTO cities (name, province_id) VALUES ('Madrid', 1)")
    db = sessionmaker(bind=engine)()
    yield db
    db.close()
    engine.dispose()


def test_legacy_schema_matches_without_linking(legacy_session):
    resolved = CityResolver().resolve(legacy_session, "Madrid", country_code="ES")

    assert resolved.city_id == 1
    assert resolved.was_created is False


def test_legacy_schema_creates_city_without_country_column(legacy_session):
    resolved = CityResolver().resolve(legacy_session, "Toledo", country_code="ES")

    row = legacy_session.execute(
        text("SELECT name, province_id FROM cities WHERE id = :id"), {"id": resolved.city_id}
    ).one()
    assert resolved.was_created
    assert row.name == "Toledo"
