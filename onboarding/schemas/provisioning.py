"""Requests and results exchanged with the provisioning transaction."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField


class ProvisioningSchedule(BaseModel):
    weekdays: List[int]
    time_start: str
    time_end: str
    duration_hours: str
    rate: str


class ProvisioningFacility(BaseModel):
    name: str
    sport_id: Optional[int] = None
    sport_name: Optional[str] = None
    schedules: List[ProvisioningSchedule] = PydanticField(default_factory=list)


class ProvisioningRequest(BaseModel):
    """Everything needed to create a tenant in the operational store."""

    model_config = ConfigDict(frozen=True)

    reference: str
    name: str
    city: str
    province: str
    country_code: Optional[str] = None
    place_hint: Optional[str] = None
    language: str = "es"
    admin_name: str
    admin_email: str
    facilities: List[ProvisioningFacility]


@dataclass(frozen=True)
class ResolvedCity:
    city_id: int
    canonical_name: str
    province_id: int
    province_name: str
    country_id: Optional[int] = None
    country_name: Optional[str] = None
    currency_code: Optional[str] = None
    was_created: bool = False
    corrected_from: Optional[str] = None
    original_input: Optional[str] = None


@dataclass
class FacilityProvisioning:
    field_id: int
    terrain_id: int
    schedule_ids: List[int] = field(default_factory=list)
    price_ids: List[int] = field(default_factory=list)


@dataclass
class ProvisioningResult:
    """Identifiers created for a tenant. ``admin_password`` is never persisted."""

    tenant_id: int
    customer_id: int
    subscription_id: int
    licence_ids: List[int]
    admin_user_id: int
    admin_login: str
    admin_password: str = field(repr=False)
    city: ResolvedCity
    facilities: List[FacilityProvisioning] = field(default_factory=list)


@dataclass(frozen=True)
class ProvisionedTenant:
    """Tenant already present in the operational store for a creation reference."""

    tenant_id: int
    name: str
    city_name: str
    admin_login: Optional[str]
    admin_email: Optional[str]
    admin_name: Optional[str]
    facilities_count: int


__all__ = [
    "FacilityProvisioning",
    "ProvisionedTenant",
    "ProvisioningFacility",
    "ProvisioningRequest",
    "ProvisioningResult",
    "ProvisioningSchedule",
    "ResolvedCity",
]
