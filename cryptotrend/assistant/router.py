"""Assistant API endpoints: streaming and sync chat."""

from fastapi import APIRouter
from sse_starlette.sse import EventSourceResponse

from cryptotrend.assistant.schemas import ChatRequest, ChatResponse
from cryptotrend.dependencies import AssistantServiceDep, CurrentUserId

router = APIRouter()


@router.post("/chat", response_class=EventSourceResponse)
async def chat_stream(
    request: ChatRequest,
    service: AssistantServiceDep,
    user_id: CurrentUserId,
) -> EventSourceResponse:
    """Stream assistant responses via Server-Sent Events."""
    return EventSourceResponse(service.chat_stream(user_id, request.question))


@router.post("/chat/sync", response_model=ChatResponse)
async def chat_sync(
    request: ChatRequest,
    service: AssistantServiceDep,
    user_id: CurrentUserId,
) -> ChatResponse:
    """Synchronous assistant chat: returns the full response at once."""
    return await service.chat(user_id, request.question)
