"""Google Gemini generateContent adapter."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from velostore.assistant.engines.base import Completion, HttpEngine, ToolCall, ToolResult
from velostore.assistant.tools import ToolDefinition
from velostore.core.errors import ReasoningEngineError


class GeminiEngine(HttpEngine):
    name = "gemini"

    async def complete(
        self,
        system_context: str,
        user_message: str,
        tools: Sequence[ToolDefinition],
        tool_results: Sequence[ToolResult] = (),
    ) -> Completion:
        contents: list[dict[str, Any]] = [
            {"role": "user", "parts": [{"text": f"{system_context}\n\nUser: {user_message}"}]}
        ]
        if tool_results:
            contents.append(
                {
                    "role": "model",
                    "parts": [
                        {"functionCall": {"name": r.call.name, "args": r.call.arguments}}
                        for r in tool_results
                    ],
                }
            )
            contents.append(
                {
                    "role": "user",
                    "parts": [
                        {"functionResponse": {"name": r.call.name, "response": r.content}}
                        for r in tool_results
                    ],
                }
            )

        body: dict[str, Any] = {
            "contents": contents,
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }
        if tools:
            body["tools"] = [
                {"functionDeclarations": [_declaration(tool) for tool in tools]}
            ]

        data = await self._post(
            f"{self.endpoint}/models/{self.model}:generateContent",
            body,
            params={"key": self.api_key},
        )
        return self._parse(data)

    def _parse(self, data: dict[str, Any]) -> Completion:
        candidates = data.get("candidates") or []
        if not candidates:
            raise ReasoningEngineError(self.name, "response has no candidates")
        parts = (candidates[0].get("content") or {}).get("parts") or []

        texts: list[str] = []
        calls: list[ToolCall] = []
        for part in parts:
            if "text" in part:
                texts.append(part["text"])
            elif "functionCall" in part:
                call = part["functionCall"]
                calls.append(
                    ToolCall(
                        id=f"call_{len(calls)}",
                        name=call.get("name", ""),
                        arguments=call.get("args") or {},
                    )
                )
        return Completion(text="".join(texts) or None, tool_calls=calls)


def _declaration(tool: ToolDefinition) -> dict[str, Any]:
    declaration: dict[str, Any] = {"name": tool.name, "description": tool.description}
    # Gemini rejects object schemas without properties
    if tool.parameters.get("properties"):
        declaration["parameters"] = tool.parameters
    return declaration
