"""
Chat turn router.

The body is read raw so that malformed JSON is reported as a 400 before the
identity headers are checked.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from vibenote.controllers import TurnOrchestrator
from vibenote.core.auth import get_chat_id_header, get_optional_user_id
from vibenote.core.dependencies import get_turn_orchestrator

router = APIRouter(prefix="/api/chat", tags=["Chat"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.post("")
async def chat_turn(
    request: Request,
    user_id: Optional[str] = Depends(get_optional_user_id),
    chat_id: Optional[str] = Depends(get_chat_id_header),
    orchestrator: TurnOrchestrator = Depends(get_turn_orchestrator),
):
    """
    Run one chat turn and stream the answer as Server-Sent Events.

    Events: `{"token": ...}` per chunk, then `{"done": true, ...}` with the
    stored message ids and the generated title (first turn only), or
    `{"error": ..., "details": ...}` if the model fails mid-stream.
    """
    raw_body = await request.body()
    turn = orchestrator.parse_turn(raw_body, chat_id=chat_id, user_id=user_id)
    stream = await orchestrator.start_turn(turn)
    return StreamingResponse(stream, media_type="text/event-stream", headers=SSE_HEADERS)
