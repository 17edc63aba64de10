"""OpenAI chat completions adapter."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import orjson

from velostore.assistant.engines.base import Completion, HttpEngine, ToolCall, ToolResult
from velostore.assistant.tools import ToolDefinition
from velostore.core.errors import ReasoningEngineError


class OpenAIEngine(HttpEngine):
    name = "openai"

    async def complete(
        self,
        system_context: str,
        user_message: str,
        tools: Sequence[ToolDefinition],
        tool_results: Sequence[ToolResult] = (),
    ) -> Completion:
        messages: list[dict[str, Any]] = [
            {"role": "system", "content": system_context},
            {"role": "user", "content": user_message},
        ]
        if tool_results:
            messages.append(
                {
                    "role": "assistant",
                    "content": None,
                    "tool_calls": [
                        {
                            "id": result.call.id,
                            "type": "function",
                            "function": {
                                "name": result.call.name,
                                "arguments": orjson.dumps(result.call.arguments).decode(),
                            },
                        }
                        for result in tool_results
                    ],
                }
            )
            messages.extend(
                {
                    "role": "tool",
                    "tool_call_id": result.call.id,
                    "content": orjson.dumps(result.content).decode(),
                }
                for result in tool_results
            )

        body: dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if tools:
            body["tools"] = [
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description,
                        "parameters": tool.parameters,
                    },
                }
                for tool in tools
            ]
            body["tool_choice"] = "auto"

        data = await self._post(
            f"{self.endpoint}/chat/completions",
            body,
            headers={"Authorization": f"Bearer {self.api_key}"},
        )
        return self._parse(data)

    def _parse(self, data: dict[str, Any]) -> Completion:
        choices = data.get("choices") or []
        if not choices:
            raise ReasoningEngineError(self.name, "response has no choices")
        message = choices[0].get("message") or {}

        calls = []
        for index, raw in enumerate(message.get("tool_calls") or []):
            function = raw.get("function") or {}
            calls.append(
                ToolCall(
                    id=raw.get("id") or f"call_{index}",
                    name=function.get("name", ""),
                    arguments=_decode_arguments(function.get("arguments")),
                )
            )
        return Completion(text=message.get("content"), tool_calls=calls)


def _decode_arguments(raw: Any) -> dict[str, Any]:
    # Arguments arrive as a JSON string produced by the model
    if isinstance(raw, dict):
        return raw
    if not raw:
        return {}
    try:
        parsed = orjson.loads(raw)
    except orjson.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}
