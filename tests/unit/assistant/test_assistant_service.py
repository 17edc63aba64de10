"""Tests for the shopping assistant entry point."""

from __future__ import annotations

from collections.abc import Sequence
from decimal import Decimal
from typing import Any

import pytest

from velostore.assistant.engines import Completion, ToolCall, ToolResult
from velostore.assistant.service import APOLOGY, NO_ANSWER, ShoppingAssistant
from velostore.assistant.tools import ToolDefinition, ToolExecutor
from velostore.cart.store import CartStore
from velostore.core.errors import ReasoningEngineError
from velostore.core.identity import CartIdentity


class ScriptedEngine:
    """Replays a fixed list of completions and records every call."""

    name = "scripted"

    def __init__(self, *completions: Completion, error: Exception | None = None) -> None:
        self.completions = list(completions)
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        system_context: str,
        user_message: str,
        tools: Sequence[ToolDefinition],
        tool_results: Sequence[ToolResult] = (),
    ) -> Completion:
        self.calls.append(
            {
                "context": system_context,
                "message": user_message,
                "results": list(tool_results),
            }
        )
        if self.error is not None:
            raise self.error
        return self.completions.pop(0)

    async def aclose(self) -> None:
        pass


class TestWithoutEngine:
    @pytest.mark.asyncio
    async def test_uses_intent_router(self, tools: ToolExecutor, guest: CartIdentity) -> None:
        assistant = ShoppingAssistant(tools)

        reply = await assistant.reply("What's in my cart?", guest)

        assert "empty" in reply.response
        assert reply.tool_calls == ["get_cart"]

    @pytest.mark.asyncio
    async def test_cart_failure_becomes_apology(
        self, tools: ToolExecutor, guest: CartIdentity, fake_redis: Any
    ) -> None:
        await tools.catalog.get_by_id(1)
        fake_redis.fail = True
        assistant = ShoppingAssistant(tools)

        reply = await assistant.reply("Add product 1 to cart", guest)

        assert reply.response == APOLOGY


class TestWithEngine:
    @pytest.mark.asyncio
    async def test_plain_text_answer(self, tools: ToolExecutor, guest: CartIdentity) -> None:
        engine = ScriptedEngine(Completion(text="We sell bikes."))
        assistant = ShoppingAssistant(tools, engine=engine)

        reply = await assistant.reply("What do you sell?", guest)

        assert reply.response == "We sell bikes."
        assert reply.tool_calls == []
        assert len(engine.calls) == 1

    @pytest.mark.asyncio
    async def test_tool_round_trip(
        self, tools: ToolExecutor, guest: CartIdentity, cart_store: CartStore
    ) -> None:
        engine = ScriptedEngine(
            Completion(tool_calls=[ToolCall("c1", "add_to_cart", {"productId": 1})]),
            Completion(text="Added the Road Bike."),
        )
        assistant = ShoppingAssistant(tools, engine=engine)

        reply = await assistant.reply("Add the road bike", guest)

        assert reply.response == "Added the Road Bike."
        assert reply.tool_calls == ["add_to_cart"]
        assert await cart_store.count(guest) == 1
        fed_back = engine.calls[1]["results"]
        assert fed_back[0].call.name == "add_to_cart"
        assert fed_back[0].content["success"] is True

    @pytest.mark.asyncio
    async def test_round_limit(self, tools: ToolExecutor, guest: CartIdentity) -> None:
        looping = Completion(tool_calls=[ToolCall("c", "get_cart", {})])
        engine = ScriptedEngine(looping, looping, looping)
        assistant = ShoppingAssistant(tools, engine=engine, max_tool_rounds=2)

        reply = await assistant.reply("cart?", guest)

        assert reply.response == NO_ANSWER
        assert reply.tool_calls == ["get_cart", "get_cart"]
        assert len(engine.calls) == 3

    @pytest.mark.asyncio
    async def test_unknown_tool_is_reported_to_engine(
        self, tools: ToolExecutor, guest: CartIdentity
    ) -> None:
        engine = ScriptedEngine(
            Completion(tool_calls=[ToolCall("c1", "checkout", {})]),
            Completion(text="I can't do that."),
        )
        assistant = ShoppingAssistant(tools, engine=engine)

        await assistant.reply("check out", guest)

        assert engine.calls[1]["results"][0].content == {
            "success": False,
            "error": "Unknown tool: checkout",
        }

    @pytest.mark.asyncio
    async def test_engine_failure_becomes_apology(
        self, tools: ToolExecutor, guest: CartIdentity
    ) -> None:
        engine = ScriptedEngine(error=ReasoningEngineError("scripted", "HTTP 500 from provider"))
        assistant = ShoppingAssistant(tools, engine=engine)

        reply = await assistant.reply("hello", guest)

        assert reply.response == APOLOGY


class TestBuildContext:
    @pytest.mark.asyncio
    async def test_empty_cart(self, tools: ToolExecutor, guest: CartIdentity) -> None:
        context = await ShoppingAssistant(tools).build_context(guest)
        assert context.endswith("The shopping cart is currently empty.")

    @pytest.mark.asyncio
    async def test_cart_summary(
        self, tools: ToolExecutor, guest: CartIdentity, cart_store: CartStore
    ) -> None:
        await cart_store.add(guest, 1, "Road Bike", Decimal("899.00"))
        await cart_store.add(guest, 2, "Mountain Bike", Decimal("1199.50"))

        context = await ShoppingAssistant(tools).build_context(guest)

        assert "Current cart has 2 item(s) with total of $2,098.50." in context

    @pytest.mark.asyncio
    async def test_context_is_sent_to_engine(
        self, tools: ToolExecutor, guest: CartIdentity
    ) -> None:
        engine = ScriptedEngine(Completion(text="ok"))

        await ShoppingAssistant(tools, engine=engine).reply("hi", guest)

        assert "VeloStore" in engine.calls[0]["context"]
        assert engine.calls[0]["message"] == "hi"
