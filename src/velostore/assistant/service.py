"""Shopping assistant entry point.

With a reasoning engine configured, the engine picks tools from TOOLS and
the assistant runs them through ToolExecutor, feeding results back until
the engine answers in text or the round limit is hit. Without one, the
IntentRouter handles the message.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from velostore.assistant.engines.base import ReasoningEngine, ToolResult
from velostore.assistant.router import IntentRouter, money
from velostore.assistant.tools import TOOLS, ToolExecutor
from velostore.config import settings
from velostore.core.errors import VeloStoreError
from velostore.core.identity import CartIdentity

logger = logging.getLogger(__name__)

APOLOGY = "I apologize, but I encountered an error. Please try again or contact support."
NO_ANSWER = "I apologize, but I couldn't process your request. Please try again."

_SYSTEM_PREAMBLE = (
    "You are a helpful shopping assistant for VeloStore, an e-commerce platform. "
    "You can help users find products, view details, and manage their shopping cart. "
    "Always be concise, friendly, and accurate in your responses."
)


@dataclass
class AssistantReply:
    response: str
    tool_calls: list[str] = field(default_factory=list)


class ShoppingAssistant:
    """Answers chat messages for one cart identity at a time."""

    def __init__(
        self,
        tools: ToolExecutor,
        engine: ReasoningEngine | None = None,
        max_tool_rounds: int | None = None,
    ):
        self.tools = tools
        self.engine = engine
        self.router = IntentRouter(tools)
        self.max_tool_rounds = (
            settings.assistant_max_tool_rounds if max_tool_rounds is None else max_tool_rounds
        )

    async def reply(self, message: str, identity: CartIdentity) -> AssistantReply:
        try:
            if self.engine is None:
                result = await self.router.route(message, identity)
                return AssistantReply(result.text, result.actions)
            return await self._reply_with_engine(self.engine, message, identity)
        except VeloStoreError:
            logger.exception("Assistant failed to handle message")
            return AssistantReply(APOLOGY)

    async def _reply_with_engine(
        self, engine: ReasoningEngine, message: str, identity: CartIdentity
    ) -> AssistantReply:
        context = await self.build_context(identity)
        executed: list[str] = []
        results: list[ToolResult] = []

        completion = await engine.complete(context, message, TOOLS)
        for _ in range(self.max_tool_rounds):
            if not completion.tool_calls:
                break
            for call in completion.tool_calls:
                content = await self.tools.execute(call.name, call.arguments, identity)
                results.append(ToolResult(call, content))
                executed.append(call.name)
            completion = await engine.complete(context, message, TOOLS, results)
        else:
            if completion.tool_calls:
                logger.warning(
                    "Reasoning engine still requesting tools after %d rounds",
                    self.max_tool_rounds,
                )

        return AssistantReply(completion.text or NO_ANSWER, executed)

    async def build_context(self, identity: CartIdentity) -> str:
        """System prompt with a one-line summary of the caller's cart."""
        parts = [_SYSTEM_PREAMBLE]
        cart = await self.tools.get_cart(identity)
        if cart.is_empty:
            parts.append("The shopping cart is currently empty.")
        else:
            parts.append(
                f"Current cart has {len(cart.items)} item(s) with total of {money(cart.total)}."
            )
        return " ".join(parts)
