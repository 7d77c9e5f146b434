"""Chat endpoint for the assistant API."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from crm_assistant.api.dependencies import get_chat_service, get_user_identity
from crm_assistant.schemas import ChatRequest, ErrorResponse, UserIdentity
from crm_assistant.services import ChatService, encode_sse

router = APIRouter(prefix="/gemini", tags=["chat"])


@router.post(
    "/chat",
    responses={
        400: {"model": ErrorResponse, "description": "Malformed request body"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)
async def chat(
    body: ChatRequest,
    request: Request,
    chat_service: Annotated[ChatService, Depends(get_chat_service)],
    identity: Annotated[UserIdentity, Depends(get_user_identity)],
) -> StreamingResponse:
    """
    Answer a question with a streamed model response.

    On the first message of a conversation (empty `history`) the user's
    leads, activities, orders, partners and products are gathered and
    prepended to the question. Later messages are sent as-is.

    **Stream format** (`text/event-stream`):
    - `data: {"text": "..."}` followed by a blank line, once per fragment
    - `data: [DONE]` followed by a blank line after a complete answer

    If generation fails mid-stream the body ends without `[DONE]`.
    """
    run = await chat_service.start(body, identity, is_disconnected=request.is_disconnected)

    return StreamingResponse(
        encode_sse(run.events()),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
