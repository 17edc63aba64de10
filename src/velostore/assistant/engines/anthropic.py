"""Anthropic messages API adapter."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
import orjson

from velostore.assistant.engines.base import Completion, HttpEngine, ToolCall, ToolResult
from velostore.assistant.tools import ToolDefinition

DEFAULT_API_VERSION = "2023-06-01"


class AnthropicEngine(HttpEngine):
    name = "anthropic"

    def __init__(
        self,
        api_key: str,
        model: str,
        endpoint: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
        client: httpx.AsyncClient | None = None,
        api_version: str = DEFAULT_API_VERSION,
    ):
        super().__init__(api_key, model, endpoint, max_tokens, temperature, timeout, client)
        self.api_version = api_version

    async def complete(
        self,
        system_context: str,
        user_message: str,
        tools: Sequence[ToolDefinition],
        tool_results: Sequence[ToolResult] = (),
    ) -> Completion:
        messages: list[dict[str, Any]] = [{"role": "user", "content": user_message}]
        if tool_results:
            messages.append(
                {
                    "role": "assistant",
                    "content": [
                        {
                            "type": "tool_use",
                            "id": r.call.id,
                            "name": r.call.name,
                            "input": r.call.arguments,
                        }
                        for r in tool_results
                    ],
                }
            )
            messages.append(
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "tool_result",
                            "tool_use_id": r.call.id,
                            "content": orjson.dumps(r.content).decode(),
                        }
                        for r in tool_results
                    ],
                }
            )

        body: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "system": system_context,
            "messages": messages,
        }
        if tools:
            body["tools"] = [
                {
                    "name": tool.name,
                    "description": tool.description,
                    "input_schema": tool.parameters,
                }
                for tool in tools
            ]

        data = await self._post(
            f"{self.endpoint}/messages",
            body,
            headers={"x-api-key": self.api_key, "anthropic-version": self.api_version},
        )
        return self._parse(data)

    def _parse(self, data: dict[str, Any]) -> Completion:
        texts: list[str] = []
        calls: list[ToolCall] = []
        for block in data.get("content") or []:
            kind = block.get("type")
            if kind == "text":
                texts.append(block.get("text", ""))
            elif kind == "tool_use":
                calls.append(
                    ToolCall(
                        id=block.get("id") or f"toolu_{len(calls)}",
                        name=block.get("name", ""),
                        arguments=block.get("input") or {},
                    )
                )
        return Completion(text="".join(texts) or None, tool_calls=calls)
