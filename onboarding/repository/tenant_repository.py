"""Inserts and lookups for tenant entities in the operational store."""

from __future__ import annotations

from typing import Optional, TypeVar

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from onboarding.models.operational import (
    City,
    Field,
    Sport,
    Sportcenter,
    User,
)

EntityT = TypeVar("EntityT")


def add_entity(db: Session, entity: EntityT) -> EntityT:
    db.add(entity)
    db.flush()
    return entity


def get_sport(db: Session, sport_id: int) -> Optional[Sport]:
    return db.get(Sport, sport_id)


def find_sport_by_name(db: Session, name: str) -> Optional[Sport]:
    pattern = f"%{name.strip().lower()}%"
    return db.execute(
        select(Sport).where(func.lower(Sport.name).like(pattern)).order_by(Sport.id).limit(1)
    ).scalar_one_or_none()


def list_sports(db: Session) -> list[Sport]:
    return list(db.execute(select(Sport).order_by(Sport.name)).scalars())


def get_sportcenter_by_reference(db: Session, reference: str) -> Optional[Sportcenter]:
    return db.execute(
        select(Sportcenter).where(Sportcenter.creation_reference == reference)
    ).scalar_one_or_none()


def get_city_name(db: Session, city_id: int) -> Optional[str]:
    return db.execute(select(City.name).where(City.id == city_id)).scalar_one_or_none()


def get_admin_user(db: Session, sportcenter_id: int) -> Optional[User]:
    return db.execute(
        select(User).where(User.sportcenter_id == sportcenter_id).order_by(User.id).limit(1)
    ).scalar_one_or_none()


def count_fields(db: Session, sportcenter_id: int) -> int:
    return int(
        db.execute(
            select(func.count(Field.id)).where(Field.sportcenter_id == sportcenter_id)
        ).scalar_one()
    )


def login_exists(db: Session, login: str) -> bool:
    return db.execute(select(User.id).where(User.login == login).limit(1)).first() is not None


__all__ = [
    "add_entity",
    "count_fields",
    "find_sport_by_name",
    "get_admin_user",
    "get_city_name",
    "get_sport",
    "get_sportcenter_by_reference",
    "list_sports",
    "login_exists",
]
