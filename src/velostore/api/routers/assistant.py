"""Shopping assistant API router.

- POST /assistant/messages - Send a chat message, get the reply and the
                             names of the actions that ran
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from velostore.api.deps import get_assistant, get_identity
from velostore.assistant.service import ShoppingAssistant
from velostore.core.identity import CartIdentity

router = APIRouter(prefix="/assistant", tags=["Assistant"])


class MessageRequest(BaseModel):
    message: str = Field(min_length=1, max_length=2000)


class MessageResponse(BaseModel):
    response: str
    tool_calls: list[str]


@router.post("/messages", response_model=MessageResponse)
async def post_message(
    body: MessageRequest,
    identity: CartIdentity = Depends(get_identity),
    assistant: ShoppingAssistant = Depends(get_assistant),
) -> MessageResponse:
    reply = await assistant.reply(body.message, identity)
    return MessageResponse(response=reply.response, tool_calls=reply.tool_calls)
