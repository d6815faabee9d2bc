"""Health assistant relay."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from naaricare.dependencies import ChatClient, CurrentUser
from naaricare.models.base import ErrorDetail
from naaricare.models.chat import ChatReply, ChatRequest
from naaricare.services.health_chat import ChatMessage, ChatServiceError

router = APIRouter(tags=["assistant"])
logger = logging.getLogger("naaricare.chat")


@router.post(
    "/chat",
    response_model=ChatReply,
    responses={429: {"model": ErrorDetail}, 502: {"model": ErrorDetail}, 503: {"model": ErrorDetail}},
)
async def chat(user: CurrentUser, client: ChatClient, body: ChatRequest) -> Any:
    """Send the conversation to the assistant and return its full reply."""
    messages = [ChatMessage(role=m.role, content=m.content) for m in body.messages]
    try:
        reply = await client.complete(messages)
    except ChatServiceError as exc:
        logger.warning("Chat relay failed for user %s: %s", user.user_id, exc)
        headers = {"Retry-After": "30"} if exc.status_code == 429 else None
        raise HTTPException(status_code=exc.status_code, detail=str(exc), headers=headers) from exc
    return ChatReply(reply=reply)
