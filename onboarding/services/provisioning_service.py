"""Create a complete tenant in the operational store inside one transaction.

Entities are created in dependency order: city (province, country) →
customer → sportcenter → subscription → licences → admin group → admin user
→ purse → per facility: field, terrain, schedules and prices. Any failure
rolls the whole unit back before a :class:`ProvisioningError` is raised.
"""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, time, timezone
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session, sessionmaker

from onboarding.core.database import DatabaseError, session_scope
from onboarding.core.validation import parse_time
from onboarding.models.operational import (
    Customer,
    Field,
    Group,
    GroupPrivilege,
    Licence,
    Price,
    Purse,
    Schedule,
    Sportcenter,
    Subscription,
    Terrain,
    User,
)
from onboarding.repository import tenant_repository
from onboarding.repository.tenant_repository import add_entity
from onboarding.schemas.provisioning import (
    FacilityProvisioning,
    ProvisionedTenant,
    ProvisioningFacility,
    ProvisioningRequest,
    ProvisioningResult,
    ProvisioningSchedule,
)

from .city_resolver import CityResolver
from .credentials import generate_credentials, hash_password
from .sport_catalog import SportCatalog

LOGGER = logging.getLogger(__name__)

SUBSCRIPTION_MONTHS = 3
LICENCE_COUNT = 3
SUBSCRIPTION_STATUS = "ACTIVE"
LICENCE_STATUS = "PAID"
ADMIN_GROUP_NAME = "Administradores"
ADMIN_PRIVILEGE = 11
GROUP_EXTRA_PRIVILEGE = 12
SHORT_NAME_LENGTH = 50

# Error codes
SPORT_NOT_FOUND = "SPORT_NOT_FOUND"
INVALID_REQUEST = "INVALID_REQUEST"
DUPLICATE_REFERENCE = "DUPLICATE_REFERENCE"
TIMEOUT = "TIMEOUT"
NETWORK_ERROR = "NETWORK_ERROR"
CREATION_FAILED = "CREATION_FAILED"


class ProvisioningError(Exception):
    """Raised when the tenant could not be created. Nothing was committed."""

    def __init__(
        self,
        message: str,
        *,
        code: str = CREATION_FAILED,
        retryable: bool = True,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.retryable = retryable
        self.status_code = status_code


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def add_months(value: datetime, months: int) -> datetime:
    """Shift ``value`` by whole months, clamping the day to the target month."""

    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _parse_clock(value: str) -> time:
    minutes = parse_time(value)
    if minutes is None:
        raise ValueError(f"Invalid time: {value}")
    return time(minutes // 60, minutes % 60)


def _parse_decimal(value: str, label: str) -> Decimal:
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Invalid {label}: {value}") from exc


def _is_timeout(exc: BaseException) -> bool:
    text = str(exc).lower()
    return "timeout" in text or "timed out" in text


def classify_exception(exc: Exception) -> ProvisioningError:
    """Translate a low level failure into a :class:`ProvisioningError`."""

    if isinstance(exc, ProvisioningError):
        return exc
    if isinstance(exc, DatabaseError) and isinstance(exc.__cause__, Exception):
        return classify_exception(exc.__cause__)
    if isinstance(exc, ValueError):
        return ProvisioningError(str(exc), code=INVALID_REQUEST, retryable=False)
    if isinstance(exc, IntegrityError) and "creation_reference" in str(exc):
        return ProvisioningError(
            "A sports center already exists for this conversation",
            code=DUPLICATE_REFERENCE,
            retryable=False,
        )
    if isinstance(exc, PoolTimeoutError) or _is_timeout(exc):
        return ProvisioningError("Operational database timed out", code=TIMEOUT, retryable=True)
    if isinstance(exc, (OperationalError, InterfaceError)):
        return ProvisioningError(
            "Operational database unavailable", code=NETWORK_ERROR, retryable=True
        )
    return ProvisioningError(
        f"Failed to create sports center: {exc}", code=CREATION_FAILED, retryable=True
    )


class ProvisioningService:
    """Provisioning transaction for new sports centers."""

    def __init__(
        self,
        session_factory: sessionmaker,
        *,
        city_resolver: Optional[CityResolver] = None,
        sport_catalog: Optional[SportCatalog] = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._city_resolver = city_resolver or CityResolver()
        self._sport_catalog = sport_catalog or SportCatalog()
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def create(self, request: ProvisioningRequest) -> ProvisioningResult:
        LOGGER.info(
            "[ProvisioningService] creating sports center %r for reference %s",
            request.name,
            request.reference,
        )
        session: Session = self._session_factory()
        try:
            result = self._create_entities(session, request)
            session.commit()
        except Exception as exc:
            self._rollback(session)
            error = classify_exception(exc)
            LOGGER.error(
                "[ProvisioningService] creation of %r rolled back: %s (code=%s, retryable=%s)",
                request.name,
                error.message,
                error.code,
                error.retryable,
            )
            if error is exc:
                raise
            raise error from exc
        except BaseException:
            # Interrupted before commit: leave nothing behind
            self._rollback(session)
            raise
        finally:
            session.close()

        LOGGER.info(
            "[ProvisioningService] created sports center %s (customer=%s, facilities=%s)",
            result.tenant_id,
            result.customer_id,
            len(result.facilities),
        )
        return result

    def find_by_reference(self, reference: str) -> Optional[ProvisionedTenant]:
        """Look up a tenant already created for ``reference`` (never cached)."""

        with session_scope(self._session_factory) as session:
            sportcenter = tenant_repository.get_sportcenter_by_reference(session, reference)
            if sportcenter is None:
                return None
            admin = tenant_repository.get_admin_user(session, sportcenter.id)
            return ProvisionedTenant(
                tenant_id=sportcenter.id,
                name=sportcenter.name,
                city_name=tenant_repository.get_city_name(session, sportcenter.city_id) or "",
                admin_login=admin.login if admin else None,
                admin_email=admin.email if admin else None,
                admin_name=admin.name if admin else None,
                facilities_count=tenant_repository.count_fields(session, sportcenter.id),
            )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _rollback(session: Session) -> None:
        try:
            session.rollback()
        except SQLAlchemyError:
            LOGGER.exception("[ProvisioningService] rollback failed")

    def _create_entities(self, session: Session, request: ProvisioningRequest) -> ProvisioningResult:
        if not request.facilities:
            raise ProvisioningError(
                "At least one facility is required", code=INVALID_REQUEST, retryable=False
            )

        city = self._city_resolver.resolve(
            session,
            request.city,
            request.province,
            request.country_code,
            request.place_hint,
            request.language,
        )

        customer = add_entity(session, Customer(name=request.name))
        sportcenter = add_entity(
            session,
            Sportcenter(
                customer_id=customer.id,
                city_id=city.city_id,
                name=request.name,
                short=request.name[:SHORT_NAME_LENGTH],
                visibility=0,
                zero=1,
                lang=request.language,
                creation_reference=request.reference,
            ),
        )

        started_at = self._clock()
        subscription = add_entity(
            session,
            Subscription(
                sportcenter_id=sportcenter.id,
                status=SUBSCRIPTION_STATUS,
                date_start=started_at,
                date_end=add_months(started_at, SUBSCRIPTION_MONTHS),
                months=SUBSCRIPTION_MONTHS,
            ),
        )
        licence_ids = [
            add_entity(
                session,
                Licence(
                    subscription_id=subscription.id,
                    status=LICENCE_STATUS,
                    date_start=add_months(started_at, month),
                    date_end=add_months(started_at, month + 1),
                ),
            ).id
            for month in range(LICENCE_COUNT)
        ]

        group = add_entity(
            session,
            Group(sportcenter_id=sportcenter.id, name=ADMIN_GROUP_NAME, privilege=ADMIN_PRIVILEGE),
        )
        self._grant_extra_privilege(session, group.id)

        credentials = generate_credentials(
            request.admin_email,
            is_taken=lambda login: tenant_repository.login_exists(session, login),
        )
        admin = add_entity(
            session,
            User(
                sportcenter_id=sportcenter.id,
                group_id=group.id,
                name=request.admin_name,
                email=request.admin_email,
                login=credentials.login,
                password=hash_password(credentials.password),
                privilege=ADMIN_PRIVILEGE,
                lang=request.language,
            ),
        )
        add_entity(
            session,
            Purse(user_id=admin.id, sportcenter_id=sportcenter.id, balance=Decimal("0")),
        )

        facilities = [
            self._create_facility(session, sportcenter.id, facility)
            for facility in request.facilities
        ]

        return ProvisioningResult(
            tenant_id=sportcenter.id,
            customer_id=customer.id,
            subscription_id=subscription.id,
            licence_ids=licence_ids,
            admin_user_id=admin.id,
            admin_login=credentials.login,
            admin_password=credentials.password,
            city=city,
            facilities=facilities,
        )

    @staticmethod
    def _grant_extra_privilege(session: Session, group_id: int) -> None:
        try:
            with session.begin_nested():
                session.add(GroupPrivilege(group_id=group_id, privilege=GROUP_EXTRA_PRIVILEGE))
        except SQLAlchemyError as exc:
            LOGGER.debug(
                "[ProvisioningService] group privilege for group %s skipped: %s", group_id, exc
            )

    def _create_facility(
        self, session: Session, sportcenter_id: int, facility: ProvisioningFacility
    ) -> FacilityProvisioning:
        sport_id = self._sport_catalog.resolve_sport_id(session, facility.sport_id, facility.sport_name)
        if sport_id is None:
            raise ProvisioningError(
                f"Sport not found: {facility.sport_name or facility.sport_id}",
                code=SPORT_NOT_FOUND,
                retryable=False,
            )

        field = add_entity(session, Field(sportcenter_id=sportcenter_id, name=facility.name))
        terrain = add_entity(
            session, Terrain(field_id=field.id, sport_id=sport_id, name=facility.name)
        )

        created = FacilityProvisioning(field_id=field.id, terrain_id=terrain.id)
        for schedule in facility.schedules:
            schedule_ids, price_id = self._create_schedule(session, terrain.id, schedule)
            created.schedule_ids.extend(schedule_ids)
            created.price_ids.append(price_id)
        return created

    @staticmethod
    def _create_schedule(
        session: Session, terrain_id: int, schedule: ProvisioningSchedule
    ) -> tuple[List[int], int]:
        duration = _parse_decimal(schedule.duration_hours, "duration")
        rate = _parse_decimal(schedule.rate, "rate")
        time_start = _parse_clock(schedule.time_start)
        time_end = _parse_clock(schedule.time_end)

        schedule_ids = [
            add_entity(
                session,
                Schedule(
                    terrain_id=terrain_id,
                    weekday=weekday,
                    time_start=time_start,
                    time_end=time_end,
                    duration=duration,
                ),
            ).id
            for weekday in schedule.weekdays
        ]
        price = add_entity(session, Price(terrain_id=terrain_id, amount=rate, duration=duration))
        return schedule_ids, price.id


__all__ = [
    "CREATION_FAILED",
    "DUPLICATE_REFERENCE",
    "INVALID_REQUEST",
    "NETWORK_ERROR",
    "ProvisioningError",
    "ProvisioningService",
    "SPORT_NOT_FOUND",
    "TIMEOUT",
    "add_months",
    "classify_exception",
]
