"""Turn a confirmed onboarding conversation into a provisioned sports center.

The orchestrator never raises: every outcome, including unexpected failures,
is reported through :class:`CreationResult`. Creation is idempotent per
conversation. A local summary or a tenant carrying the conversation id as its
creation reference short-circuits any new provisioning attempt.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Tuple

from pydantic import ValidationError

from onboarding.core.config import settings
from onboarding.core.database import DatabaseError
from onboarding.models import ConversationStatus, SportsCenter
from onboarding.repository.conversation_repository import ConversationRepository
from onboarding.repository.sports_center_repository import SportsCenterRepository
from onboarding.schemas.creation import CreatedSportsCenter, CreationResult
from onboarding.schemas.provisioning import (
    ProvisionedTenant,
    ProvisioningFacility,
    ProvisioningRequest,
    ProvisioningResult,
    ProvisioningSchedule,
)
from onboarding.schemas.record import Facility, LastError, Schedule, StructuredRecord

from . import analytics_service as events
from . import readiness
from .analytics_service import AnalyticsService
from .notification_service import NotificationResult, WelcomeNotifier
from .provisioning_service import (
    CREATION_FAILED,
    DUPLICATE_REFERENCE,
    NETWORK_ERROR,
    TIMEOUT,
    ProvisioningError,
    ProvisioningService,
    classify_exception,
)

LOGGER = logging.getLogger(__name__)

CONVERSATION_NOT_FOUND = "CONVERSATION_NOT_FOUND"
NO_DATA = "NO_DATA"
NOT_CONFIRMED = "NOT_CONFIRMED"
INCOMPLETE_DATA = "INCOMPLETE_DATA"
NO_FACILITIES = "NO_FACILITIES"
INTERNAL_ERROR = "INTERNAL_ERROR"

RETRY_MESSAGE = "We could not create the sports center right now. Please try again in a few minutes."

_RETRYABLE_CODES = {TIMEOUT, NETWORK_ERROR, CREATION_FAILED}
_COMMA_PROVINCE = re.compile(r"^(.+),\s*(.+)$")
_PAREN_PROVINCE = re.compile(r"^(.+)\s*\((.+)\)$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def extract_province(city: str) -> Tuple[str, str]:
    """Split ``"City, Province"`` or ``"City (Province)"``; the province defaults to the city."""

    for pattern in (_COMMA_PROVINCE, _PAREN_PROVINCE):
        match = pattern.match(city)
        if match:
            return match.group(1).strip(), match.group(2).strip()
    return city.strip(), city.strip()


def to_provisioning_schedule(schedule: Schedule) -> ProvisioningSchedule:
    return ProvisioningSchedule(
        weekdays=list(schedule.weekdays),
        time_start=schedule.start_time,
        time_end=schedule.end_time,
        duration_hours=f"{schedule.slot_duration_minutes / 60:.2f}",
        rate=f"{schedule.rate_per_slot:.2f}",
    )


def to_provisioning_facility(facility: Facility) -> ProvisioningFacility:
    return ProvisioningFacility(
        name=facility.name,
        sport_id=facility.sport_id,
        sport_name=facility.sport_name,
        schedules=[to_provisioning_schedule(schedule) for schedule in facility.schedules],
    )


def build_request(conversation_id: str, record: StructuredRecord) -> ProvisioningRequest:
    city, province = extract_province(record.city or "")
    return ProvisioningRequest(
        reference=conversation_id,
        name=record.tenant_name.strip(),
        city=city,
        province=province,
        country_code=record.country_code,
        place_hint=record.place_resolution_hint,
        language=record.language or settings.DEFAULT_LANGUAGE,
        admin_name=record.admin_name.strip(),
        admin_email=record.admin_email,
        facilities=[to_provisioning_facility(facility) for facility in record.facilities],
    )


def is_retryable(error: ProvisioningError) -> bool:
    if error.status_code is not None and error.status_code >= 500:
        return True
    return error.retryable or error.code in _RETRYABLE_CODES


class SportsCenterCreationService:
    """Creation orchestrator for onboarding conversations."""

    def __init__(
        self,
        *,
        conversations: ConversationRepository,
        sports_centers: SportsCenterRepository,
        provisioning: ProvisioningService,
        notifier: WelcomeNotifier,
        analytics: AnalyticsService,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._conversations = conversations
        self._sports_centers = sports_centers
        self._provisioning = provisioning
        self._notifier = notifier
        self._analytics = analytics
        self._clock = clock

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def create_from_conversation(self, conversation_id: str) -> CreationResult:
        LOGGER.info("[SportsCenterCreationService] creation requested for %s", conversation_id)
        try:
            return self._create(conversation_id)
        except Exception:
            LOGGER.exception(
                "[SportsCenterCreationService] unexpected error creating sports center for %s",
                conversation_id,
            )
            return CreationResult.failed(INTERNAL_ERROR, RETRY_MESSAGE, retryable=True)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------
    def _create(self, conversation_id: str) -> CreationResult:
        conversation = self._conversations.get(conversation_id)
        if conversation is None:
            LOGGER.warning("[SportsCenterCreationService] conversation %s not found", conversation_id)
            return CreationResult.failed(CONVERSATION_NOT_FOUND, "Conversation not found")

        existing = self._find_existing(conversation_id)
        if existing is not None:
            return existing

        try:
            record = StructuredRecord.from_document(conversation.collected_data or None)
        except ValidationError as exc:
            LOGGER.warning(
                "[SportsCenterCreationService] stored data for %s is invalid: %s", conversation_id, exc
            )
            return CreationResult.failed(NO_DATA, "Stored configuration data is invalid")
        if record is None:
            return CreationResult.failed(NO_DATA, "No configuration data collected")
        if not record.confirmed:
            return CreationResult.failed(
                NOT_CONFIRMED, "Configuration must be confirmed before creation"
            )
        check = readiness.check(record)
        if not check.ready:
            code = NO_FACILITIES if check.missing == [readiness.FACILITIES] else INCOMPLETE_DATA
            LOGGER.warning(
                "[SportsCenterCreationService] %s for %s: %s", code, conversation_id, check.message
            )
            return CreationResult.failed(code, check.message)

        request = build_request(conversation_id, record)
        try:
            result = self._provisioning.create(request)
        except ProvisioningError as error:
            return self._handle_failure(conversation_id, error)

        summary = self._store_summary(
            SportsCenter(
                conversation_id=conversation_id,
                external_id=result.tenant_id,
                name=request.name,
                city=result.city.canonical_name,
                language=request.language,
                admin_email=request.admin_email,
                admin_name=request.admin_name,
                admin_login=result.admin_login,
                facilities_count=len(request.facilities),
            )
        )
        self._complete(conversation_id, summary, result.tenant_id)
        self._notify(conversation_id, request, result)

        return CreationResult.succeeded(
            CreatedSportsCenter(
                id=summary.id if summary else None,
                external_id=result.tenant_id,
                name=request.name,
                admin_email=request.admin_email,
                admin_login=result.admin_login,
                admin_password=result.admin_password,
            )
        )

    def _find_existing(self, conversation_id: str) -> Optional[CreationResult]:
        existing = self._sports_centers.get_by_conversation(conversation_id)
        if existing is not None:
            LOGGER.info(
                "[SportsCenterCreationService] sports center %s already created for %s",
                existing.external_id,
                conversation_id,
            )
            return CreationResult.succeeded(
                CreatedSportsCenter(
                    id=existing.id,
                    external_id=existing.external_id,
                    name=existing.name,
                    admin_email=existing.admin_email,
                )
            )

        try:
            tenant = self._provisioning.find_by_reference(conversation_id)
        except DatabaseError as exc:
            return self._handle_failure(conversation_id, classify_exception(exc))
        if tenant is None:
            return None

        LOGGER.warning(
            "[SportsCenterCreationService] tenant %s exists for %s without a local summary; backfilling",
            tenant.tenant_id,
            conversation_id,
        )
        summary = self._backfill(conversation_id, tenant)
        self._complete(conversation_id, summary, tenant.tenant_id)
        return CreationResult.succeeded(
            CreatedSportsCenter(
                id=summary.id if summary else None,
                external_id=tenant.tenant_id,
                name=tenant.name,
                admin_email=tenant.admin_email or "",
            )
        )

    def _backfill(self, conversation_id: str, tenant: ProvisionedTenant) -> Optional[SportsCenter]:
        record = self._conversations.get_record(conversation_id) or StructuredRecord()
        return self._store_summary(
            SportsCenter(
                conversation_id=conversation_id,
                external_id=tenant.tenant_id,
                name=tenant.name,
                city=tenant.city_name,
                language=record.language or settings.DEFAULT_LANGUAGE,
                admin_email=tenant.admin_email or record.admin_email or "",
                admin_name=tenant.admin_name or record.admin_name or "",
                admin_login=tenant.admin_login,
                facilities_count=tenant.facilities_count,
            )
        )

    def _handle_failure(self, conversation_id: str, error: ProvisioningError) -> CreationResult:
        if error.code == DUPLICATE_REFERENCE:
            existing = self._find_existing(conversation_id)
            if existing is not None:
                return existing

        retryable = is_retryable(error)
        LOGGER.error(
            "[SportsCenterCreationService] provisioning failed for %s: %s (code=%s, retryable=%s)",
            conversation_id,
            error.message,
            error.code,
            retryable,
        )
        self._record_error(conversation_id, error.code, error.message)
        self._analytics.log_event(
            events.SPORTS_CENTER_FAILED,
            conversation_id=conversation_id,
            payload={
                "code": error.code,
                "message": error.message,
                "retryable": retryable,
                "status_code": error.status_code,
            },
        )
        message = RETRY_MESSAGE if retryable else error.message
        return CreationResult.failed(error.code, message, retryable=retryable)

    def _record_error(self, conversation_id: str, code: str, message: str) -> None:
        timestamp = self._clock()

        def _updater(record: StructuredRecord) -> StructuredRecord:
            retry_count = record.last_error.retry_count + 1 if record.last_error else 1
            return record.model_copy(
                update={
                    "last_error": LastError(
                        code=code, message=message, timestamp_utc=timestamp, retry_count=retry_count
                    )
                }
            )

        try:
            self._conversations.merge_update(conversation_id, _updater)
        except DatabaseError as exc:
            LOGGER.warning(
                "[SportsCenterCreationService] could not record error on %s: %s", conversation_id, exc
            )

    def _store_summary(self, summary: SportsCenter) -> Optional[SportsCenter]:
        try:
            return self._sports_centers.create(summary)
        except DatabaseError:
            # The tenant exists; the next call backfills the summary by reference
            LOGGER.exception(
                "[SportsCenterCreationService] failed to store summary for %s",
                summary.conversation_id,
            )
            return None

    def _complete(
        self, conversation_id: str, summary: Optional[SportsCenter], tenant_id: int
    ) -> None:
        try:
            self._conversations.set_status(
                conversation_id,
                ConversationStatus.COMPLETED,
                sports_center_id=summary.id if summary else None,
            )
        except DatabaseError:
            LOGGER.exception(
                "[SportsCenterCreationService] failed to mark %s completed", conversation_id
            )
        payload = {"external_id": tenant_id}
        self._analytics.log_event(
            events.SPORTS_CENTER_CREATED, conversation_id=conversation_id, payload=payload
        )
        self._analytics.log_event(
            events.CONVERSATION_COMPLETED, conversation_id=conversation_id, payload=payload
        )

    def _notify(
        self, conversation_id: str, request: ProvisioningRequest, result: ProvisioningResult
    ) -> None:
        template_data: Dict[str, Any] = {
            "sports_center_name": request.name,
            "admin_name": request.admin_name,
            "admin_login": result.admin_login,
            "admin_password": result.admin_password,
            "city": result.city.canonical_name,
            "facilities_count": len(request.facilities),
            "facilities": [
                {"name": facility.name, "sport_name": facility.sport_name}
                for facility in request.facilities
            ],
            "external_id": result.tenant_id,
            "language": request.language,
        }
        try:
            outcome = self._notifier.send(request.admin_email, template_data)
        except Exception as exc:
            LOGGER.exception(
                "[SportsCenterCreationService] unexpected error sending welcome email for %s",
                conversation_id,
            )
            outcome = NotificationResult(
                success=False, error_code="UNEXPECTED_ERROR", error_message=str(exc)
            )

        if outcome.success:
            self._analytics.log_event(
                events.EMAIL_SENT,
                conversation_id=conversation_id,
                payload={"message_id": outcome.message_id},
            )
            return
        LOGGER.warning(
            "[SportsCenterCreationService] welcome email for %s not delivered: %s",
            conversation_id,
            outcome.error_message,
        )
        self._analytics.log_event(
            events.EMAIL_FAILED,
            conversation_id=conversation_id,
            payload={"code": outcome.error_code, "message": outcome.error_message},
        )


__all__ = [
    "CONVERSATION_NOT_FOUND",
    "INCOMPLETE_DATA",
    "INTERNAL_ERROR",
    "NOT_CONFIRMED",
    "NO_DATA",
    "NO_FACILITIES",
    "RETRY_MESSAGE",
    "SportsCenterCreationService",
    "build_request",
    "extract_province",
    "is_retryable",
]
