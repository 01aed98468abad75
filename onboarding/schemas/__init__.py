from .conversation import (
    ConversationCreate,
    ConversationResponse,
    EscalationRequest,
    ProgressResponse,
    ProgressStep,
    ReadinessResponse,
    SportResponse,
    SummaryResponse,
    ToolCallBatch,
    ToolCallBatchResponse,
    ToolCallRequest,
    ToolOutcomeResponse,
)
from .creation import CreatedSportsCenter, CreationError, CreationResult
from .provisioning import (
    FacilityProvisioning,
    ProvisionedTenant,
    ProvisioningFacility,
    ProvisioningRequest,
    ProvisioningResult,
    ProvisioningSchedule,
    ResolvedCity,
)
from .record import Escalation, Facility, LastError, Schedule, StructuredRecord
from .tool_calls import (
    CollectAdminInfo,
    CollectFacility,
    CollectSportsCenterInfo,
    ConfirmConfiguration,
    CreateSportsCenter,
    DetectLanguage,
    RequestHumanHelp,
    ScheduleInput,
    ToolCall,
    UnknownToolCall,
    UpdateFacility,
    parse_tool_call,
)

__all__ = [
    "CollectAdminInfo",
    "CollectFacility",
    "CollectSportsCenterInfo",
    "ConfirmConfiguration",
    "ConversationCreate",
    "ConversationResponse",
    "CreateSportsCenter",
    "CreatedSportsCenter",
    "CreationError",
    "CreationResult",
    "DetectLanguage",
    "Escalation",
    "EscalationRequest",
    "Facility",
    "FacilityProvisioning",
    "LastError",
    "ProgressResponse",
    "ProgressStep",
    "ProvisionedTenant",
    "ProvisioningFacility",
    "ProvisioningRequest",
    "ProvisioningResult",
    "ProvisioningSchedule",
    "ReadinessResponse",
    "RequestHumanHelp",
    "ResolvedCity",
    "Schedule",
    "ScheduleInput",
    "SportResponse",
    "StructuredRecord",
    "SummaryResponse",
    "ToolCall",
    "ToolCallBatch",
    "ToolCallBatchResponse",
    "ToolCallRequest",
    "ToolOutcomeResponse",
    "UnknownToolCall",
    "UpdateFacility",
    "parse_tool_call",
]
