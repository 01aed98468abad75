"""SQLAlchemy ORM models for the operational store where tenants are provisioned."""

from __future__ import annotations

from datetime import datetime, time
from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    SmallInteger,
    String,
    Time,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class OperationalBase(DeclarativeBase):
    """Base declarative class for the operational store."""


class Country(OperationalBase):
    __tablename__ = "countries"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(String(2), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    currency: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)


class Province(OperationalBase):
    __tablename__ = "provinces"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    trash: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default="0")
    created: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)


class City(OperationalBase):
    """Gazetteer city. ``country_id`` is missing on older deployments."""

    __tablename__ = "cities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    province_id: Mapped[int] = mapped_column(ForeignKey("provinces.id"), nullable=False)
    country_id: Mapped[Optional[int]] = mapped_column(ForeignKey("countries.id"), nullable=True)
    trash: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default="0")
    created: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)


class Customer(OperationalBase):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    trash: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default="0")
    created: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)


class Sportcenter(OperationalBase):
    """Tenant record. ``creation_reference`` holds the originating conversation id."""

    __tablename__ = "sportcenters"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey("customers.id"), nullable=False)
    city_id: Mapped[int] = mapped_column(ForeignKey("cities.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    short: Mapped[str] = mapped_column(String(50), nullable=False)
    visibility: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    zero: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=1)
    lang: Mapped[str] = mapped_column(String(10), nullable=False, default="es")
    creation_reference: Mapped[Optional[str]] = mapped_column(
        String(64), nullable=True, unique=True
    )
    trash: Mapped[int] = mapped_column(SmallInteger, nullable=False, server_default="0")
    created: Mapped[datetime] = mapped_column(DateTime, server_default=func.now(), nullable=False)


class Subscription(OperationalBase):
    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sportcenter_id: Mapped[int] = mapped_column(ForeignKey("sportcenters.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    date_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    date_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    months: Mapped[int] = mapped_column(Integer, nullable=False)


class Licence(OperationalBase):
    __tablename__ = "licences"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    subscription_id: Mapped[int] = mapped_column(ForeignKey("subscriptions.id"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    date_start: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    date_end: Mapped[datetime] = mapped_column(DateTime, nullable=False)


class Group(OperationalBase):
    __tablename__ = "groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sportcenter_id: Mapped[int] = mapped_column(ForeignKey("sportcenters.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    privilege: Mapped[int] = mapped_column(Integer, nullable=False)


class GroupPrivilege(OperationalBase):
    __tablename__ = "group_privileges"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    group_id: Mapped[int] = mapped_column(ForeignKey("groups.id"), nullable=False)
    privilege: Mapped[int] = mapped_column(Integer, nullable=False)


class User(OperationalBase):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sportcenter_id: Mapped[int] = mapped_column(ForeignKey("sportcenters.id"), nullable=False)
    group_id: Mapped[int] = mapped_column(ForeignKey("groups.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    login: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    privilege: Mapped[int] = mapped_column(Integer, nullable=False)
    lang: Mapped[str] = mapped_column(String(10), nullable=False, default="es")


class Purse(OperationalBase):
    __tablename__ = "purses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    sportcenter_id: Mapped[int] = mapped_column(ForeignKey("sportcenters.id"), nullable=False)
    balance: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0"))


class Sport(OperationalBase):
    __tablename__ = "sports"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)


class Field(OperationalBase):
    __tablename__ = "fields"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sportcenter_id: Mapped[int] = mapped_column(ForeignKey("sportcenters.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class Terrain(OperationalBase):
    __tablename__ = "terrains"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    field_id: Mapped[int] = mapped_column(ForeignKey("fields.id"), nullable=False)
    sport_id: Mapped[int] = mapped_column(ForeignKey("sports.id"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class Schedule(OperationalBase):
    """One opening window of a terrain on a single weekday (1 = Monday)."""

    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    terrain_id: Mapped[int] = mapped_column(ForeignKey("terrains.id"), nullable=False)
    weekday: Mapped[int] = mapped_column(SmallInteger, nullable=False)
    time_start: Mapped[time] = mapped_column(Time, nullable=False)
    time_end: Mapped[time] = mapped_column(Time, nullable=False)
    duration: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)


class Price(OperationalBase):
    __tablename__ = "prices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    terrain_id: Mapped[int] = mapped_column(ForeignKey("terrains.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    duration: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)


__all__ = [
    "City",
    "Country",
    "Customer",
    "Field",
    "Group",
    "GroupPrivilege",
    "Licence",
    "OperationalBase",
    "Price",
    "Province",
    "Purse",
    "Schedule",
    "Sport",
    "Sportcenter",
    "Subscription",
    "Terrain",
    "User",
]
