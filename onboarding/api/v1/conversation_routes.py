"""Routes driving an onboarding conversation from the assistant's tool calls."""

from fastapi import APIRouter, Depends, status

from onboarding.dependencies import get_conversation_service, get_creation_service
from onboarding.schemas import (
    ConversationCreate,
    ConversationResponse,
    CreationResult,
    EscalationRequest,
    ProgressResponse,
    ProgressStep,
    ReadinessResponse,
    SummaryResponse,
    ToolCallBatch,
    ToolCallBatchResponse,
    ToolOutcomeResponse,
)
from onboarding.services import ConversationService, SportsCenterCreationService

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
def start_conversation(
    payload: ConversationCreate,
    service: ConversationService = Depends(get_conversation_service),
):
    return service.start(payload.session_id, payload.language)


@router.get("/{conversation_id}", response_model=ConversationResponse)
def get_conversation(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
):
    return service.get(conversation_id)


@router.post("/{conversation_id}/tool-calls", response_model=ToolCallBatchResponse)
def apply_tool_calls(
    conversation_id: str,
    payload: ToolCallBatch,
    service: ConversationService = Depends(get_conversation_service),
):
    """Apply the assistant's tool calls in order and report one outcome per call."""

    applied, record = service.handle_tool_calls(
        conversation_id, [(call.name, call.arguments) for call in payload.calls]
    )
    return ToolCallBatchResponse(
        conversation_id=conversation_id,
        outcomes=[
            ToolOutcomeResponse(
                tool=item.outcome.tool,
                success=item.outcome.success,
                message=item.outcome.message,
                errors=list(item.outcome.errors),
                creation=item.creation,
            )
            for item in applied
        ],
        collected_data=record.to_document(),
    )


@router.get("/{conversation_id}/readiness", response_model=ReadinessResponse)
def get_readiness(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
):
    readiness, record = service.readiness(conversation_id)
    return ReadinessResponse(
        ready=readiness.ready,
        confirmed=record.confirmed,
        missing=readiness.missing,
        message=readiness.message,
    )


@router.get("/{conversation_id}/progress", response_model=ProgressResponse)
def get_progress(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
):
    progress = service.progress(conversation_id)
    return ProgressResponse(
        steps=[ProgressStep(name=step.name, completed=step.completed) for step in progress.steps],
        completion_percentage=progress.completion_percentage,
    )


@router.get("/{conversation_id}/summary", response_model=SummaryResponse)
def get_summary(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
):
    return SummaryResponse(summary=service.summary(conversation_id))


@router.post("/{conversation_id}/sports-center", response_model=CreationResult)
def create_sports_center(
    conversation_id: str,
    service: SportsCenterCreationService = Depends(get_creation_service),
):
    return service.create_from_conversation(conversation_id)


@router.post(
    "/{conversation_id}/restart",
    response_model=ConversationResponse,
    status_code=status.HTTP_201_CREATED,
)
def restart_conversation(
    conversation_id: str,
    service: ConversationService = Depends(get_conversation_service),
):
    return service.restart(conversation_id)


@router.post("/{conversation_id}/escalate", response_model=ReadinessResponse)
def escalate_conversation(
    conversation_id: str,
    payload: EscalationRequest,
    service: ConversationService = Depends(get_conversation_service),
):
    service.escalate(conversation_id, payload.reason)
    readiness, record = service.readiness(conversation_id)
    return ReadinessResponse(
        ready=readiness.ready,
        confirmed=record.confirmed,
        missing=readiness.missing,
        message=readiness.message,
    )


__all__ = ["router"]
