from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field as PydanticField, field_validator

from .creation import CreationResult


class ConversationCreate(BaseModel):
    session_id: str = PydanticField(..., min_length=1, max_length=255)
    language: Optional[str] = PydanticField(None, min_length=2, max_length=2)

    @field_validator("session_id", mode="before")
    @classmethod
    def _strip(cls, value: str) -> str:
        if isinstance(value, str):
            return value.strip()
        return value


class ConversationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    language: str
    status: str
    sports_center_id: Optional[int] = None
    collected_data: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ToolCallRequest(BaseModel):
    name: str
    arguments: Union[str, Dict[str, Any], None] = None


class ToolCallBatch(BaseModel):
    calls: List[ToolCallRequest] = PydanticField(..., min_length=1)


class ToolOutcomeResponse(BaseModel):
    tool: str
    success: bool
    message: str
    errors: List[str] = PydanticField(default_factory=list)
    creation: Optional[CreationResult] = None


class ToolCallBatchResponse(BaseModel):
    conversation_id: str
    outcomes: List[ToolOutcomeResponse]
    collected_data: Optional[Dict[str, Any]] = None


class ReadinessResponse(BaseModel):
    ready: bool
    confirmed: bool
    missing: List[str]
    message: str


class ProgressStep(BaseModel):
    name: str
    completed: bool


class ProgressResponse(BaseModel):
    steps: List[ProgressStep]
    completion_percentage: int


class SummaryResponse(BaseModel):
    summary: str


class EscalationRequest(BaseModel):
    reason: str = PydanticField(..., min_length=1, max_length=500)


class SportResponse(BaseModel):
    id: int
    name: str


__all__ = [
    "ConversationCreate",
    "ConversationResponse",
    "EscalationRequest",
    "ProgressResponse",
    "ProgressStep",
    "ReadinessResponse",
    "SportResponse",
    "SummaryResponse",
    "ToolCallBatch",
    "ToolCallBatchResponse",
    "ToolCallRequest",
    "ToolOutcomeResponse",
]
