"""Tool calls emitted by the assistant, modelled as a closed set of variants."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field as PydanticField, ValidationError
from pydantic.alias_generators import to_camel

LOGGER = logging.getLogger(__name__)


class ToolArguments(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ScheduleInput(ToolArguments):
    """Schedule as described by the assistant: ``HH:MM`` times and minutes."""

    weekdays: List[int] = PydanticField(default_factory=list)
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    duration: Optional[int] = None
    rate: Optional[float] = None


class DetectLanguage(ToolArguments):
    kind: Literal["detect_language"] = "detect_language"
    language_code: str
    confidence: Optional[float] = None


class CollectSportsCenterInfo(ToolArguments):
    kind: Literal["collect_sports_center_info"] = "collect_sports_center_info"
    name: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    place_id: Optional[str] = None


class CollectAdminInfo(ToolArguments):
    kind: Literal["collect_admin_info"] = "collect_admin_info"
    name: Optional[str] = None
    email: Optional[str] = None


class CollectFacility(ToolArguments):
    kind: Literal["collect_facility"] = "collect_facility"
    name: str
    sport_id: Optional[int] = None
    sport_name: Optional[str] = None
    schedules: List[ScheduleInput] = PydanticField(default_factory=list)


class UpdateFacility(ToolArguments):
    kind: Literal["update_facility"] = "update_facility"
    facility_index: int
    name: Optional[str] = None
    sport_id: Optional[int] = None
    sport_name: Optional[str] = None
    schedules: Optional[List[ScheduleInput]] = None


class ConfirmConfiguration(ToolArguments):
    kind: Literal["confirm_configuration"] = "confirm_configuration"
    confirmed: bool


class RequestHumanHelp(ToolArguments):
    kind: Literal["request_human_help"] = "request_human_help"
    reason: str
    details: Optional[str] = None


class CreateSportsCenter(ToolArguments):
    kind: Literal["create_sports_center"] = "create_sports_center"


class UnknownToolCall(ToolArguments):
    """A call the service does not understand. It is logged and ignored."""

    kind: Literal["unknown"] = "unknown"
    name: str
    arguments: Dict[str, Any] = PydanticField(default_factory=dict)
    reason: str


ToolCall = Union[
    DetectLanguage,
    CollectSportsCenterInfo,
    CollectAdminInfo,
    CollectFacility,
    UpdateFacility,
    ConfirmConfiguration,
    RequestHumanHelp,
    CreateSportsCenter,
    UnknownToolCall,
]

_VARIANTS: Dict[str, type[ToolArguments]] = {
    "detect_language": DetectLanguage,
    "collect_sports_center_info": CollectSportsCenterInfo,
    "collect_admin_info": CollectAdminInfo,
    "collect_facility": CollectFacility,
    "update_facility": UpdateFacility,
    "confirm_configuration": ConfirmConfiguration,
    "request_human_help": RequestHumanHelp,
    "create_sports_center": CreateSportsCenter,
}


def parse_tool_call(name: str, arguments: Union[str, Mapping[str, Any], None]) -> ToolCall:
    """Build the variant for ``name``; anything unusable becomes :class:`UnknownToolCall`."""

    if isinstance(arguments, str):
        try:
            arguments = json.loads(arguments) if arguments.strip() else {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Could not decode arguments for tool %s: %s", name, exc)
            return UnknownToolCall(name=name, reason=f"invalid JSON arguments: {exc.msg}")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        LOGGER.warning(
            "Arguments for tool %s are %s, not an object", name, type(arguments).__name__
        )
        return UnknownToolCall(name=name, reason="arguments must be a JSON object")
    payload = dict(arguments)

    variant = _VARIANTS.get(name)
    if variant is None:
        LOGGER.warning("Unknown tool call received: %s", name)
        return UnknownToolCall(name=name, arguments=payload, reason="unrecognized tool")

    payload.pop("kind", None)
    try:
        return variant.model_validate(payload)
    except ValidationError as exc:
        LOGGER.warning("Invalid arguments for tool %s: %s", name, exc)
        return UnknownToolCall(name=name, arguments=payload, reason=str(exc))


__all__ = [
    "CollectAdminInfo",
    "CollectFacility",
    "CollectSportsCenterInfo",
    "ConfirmConfiguration",
    "CreateSportsCenter",
    "DetectLanguage",
    "RequestHumanHelp",
    "ScheduleInput",
    "ToolCall",
    "UnknownToolCall",
    "UpdateFacility",
    "parse_tool_call",
]
