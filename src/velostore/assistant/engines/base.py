"""Reasoning engine contract.

An engine receives a system context, the user's message, the tool schema
and the results of tools it asked for earlier in the same turn. It
answers with text, tool calls, or both. Provider request shapes stay
inside the adapters.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from velostore.assistant.tools import ToolDefinition
from velostore.core.errors import ReasoningEngineError


@dataclass(frozen=True)
class ToolCall:
    """A tool the engine asked to run."""

    id: str
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """Output of a tool call, fed back to the engine."""

    call: ToolCall
    content: dict[str, Any]


@dataclass(frozen=True)
class Completion:
    text: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)


class ReasoningEngine(Protocol):
    """Capability implemented by every provider adapter."""

    name: str

    async def complete(
        self,
        system_context: str,
        user_message: str,
        tools: Sequence[ToolDefinition],
        tool_results: Sequence[ToolResult] = (),
    ) -> Completion: ...

    async def aclose(self) -> None: ...


class HttpEngine:
    """Shared plumbing for adapters that talk JSON over HTTPS."""

    name = "http"

    def __init__(
        self,
        api_key: str,
        model: str,
        endpoint: str,
        max_tokens: int,
        temperature: float,
        timeout: float,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(timeout=timeout)

    async def _post(
        self,
        url: str,
        body: dict[str, Any],
        headers: dict[str, str] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.post(url, json=body, headers=headers, params=params)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ReasoningEngineError(
                self.name, f"HTTP {e.response.status_code} from provider"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ReasoningEngineError(self.name, f"request failed: {e}") from e
        if not isinstance(data, dict):
            raise ReasoningEngineError(self.name, "unexpected response body")
        return data

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
