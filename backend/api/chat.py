"""Chat API endpoints: streamed responses, resume, cancel and delete."""

import logging
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import StreamingResponse

from backend.auth import get_current_user
from backend.dependencies import get_chat_service, resumable_streams_enabled
from backend.errors import (
    ChatAccessDenied,
    ChatNotFound,
    PreconditionViolation,
    RateLimitExceeded,
    StreamAlreadyActive,
    StreamNotFound,
)
from backend.models import PostChatRequest, SessionUser
from backend.services.chat_service import ChatService
from backend.streaming.chunks import StreamChunk

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


async def sse_events(reader: AsyncIterator[StreamChunk]) -> AsyncIterator[str]:
    async for chunk in reader:
        yield chunk.to_sse()


@router.post("")
async def post_chat(
    request: PostChatRequest,
    user: SessionUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    """
    Send a message and stream the response as Server-Sent Events.

    Every event has the format ``data: {"kind": ..., "text"|"payload": ...}``.
    Answer text arrives as ``marker``/``word`` chunks; the reasoning trace,
    tool side-channel events and the terminal ``done``/``error`` signal arrive
    as ``control`` chunks. The stream id is returned in the X-Stream-Id header
    and survives a disconnect: GET /api/chat/stream resumes it.

    Raises:
        HTTPException: 400 bad request, 403 foreign chat, 429 quota exhausted
    """
    try:
        stream_id, reader = await service.start_chat(request, user)

        return StreamingResponse(
            sse_events(reader),
            media_type="text/event-stream",
            headers={**SSE_HEADERS, "X-Stream-Id": stream_id},
        )

    except RateLimitExceeded as e:
        logger.warning(str(e))
        raise HTTPException(
            status_code=429,
            detail="You have exceeded your maximum number of messages for the day.",
        )
    except ChatAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))
    except PreconditionViolation as e:
        raise HTTPException(status_code=400, detail=str(e))
    except StreamAlreadyActive as e:
        raise HTTPException(status_code=409, detail=str(e))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error starting chat stream: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="An error occurred while processing your request")


@router.get("/stream")
async def resume_stream(
    chat_id: Optional[str] = Query(None, alias="chatId"),
    user: SessionUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
    resumable: bool = Depends(resumable_streams_enabled),
):
    """
    Resume the most recent stream of a chat.

    Attaches to the stream when it is still being produced. Shortly after it
    finished, replays the persisted assistant message as a single
    ``append-message`` control event. Otherwise the event stream is empty.

    Returns:
        204 when resumable streams are disabled (no Redis)
    """
    if not resumable:
        return Response(status_code=204)

    if not chat_id:
        raise HTTPException(status_code=400, detail="chatId is required")

    try:
        reader = await service.resume_stream(chat_id, user)
    except (ChatNotFound, StreamNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ChatAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))

    return StreamingResponse(
        sse_events(reader),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


@router.delete("/stream/{stream_id}", status_code=202)
async def cancel_stream(
    stream_id: str,
    user: SessionUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Cancel a live stream; attached readers receive an error event."""
    try:
        await service.cancel_stream(stream_id, user)
    except (StreamNotFound, ChatNotFound) as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ChatAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))

    return {"stream_id": stream_id, "status": "cancelled"}


@router.delete("")
async def delete_chat(
    chat_id: Optional[str] = Query(None, alias="id"),
    user: SessionUser = Depends(get_current_user),
    service: ChatService = Depends(get_chat_service),
):
    """Delete a chat and its messages (owner only)."""
    if not chat_id:
        raise HTTPException(status_code=400, detail="id is required")

    try:
        chat = await service.delete_chat(chat_id, user)
    except ChatNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ChatAccessDenied as e:
        raise HTTPException(status_code=403, detail=str(e))

    return chat.model_dump(mode="json") if chat else {"id": chat_id}
