"""Chat shopping assistant: intent router and reasoning-engine path."""

from velostore.assistant.router import IntentRouter, RouteResult
from velostore.assistant.service import AssistantReply, ShoppingAssistant
from velostore.assistant.tools import TOOLS, ToolDefinition, ToolExecutor

__all__ = [
    "AssistantReply",
    "IntentRouter",
    "RouteResult",
    "ShoppingAssistant",
    "TOOLS",
    "ToolDefinition",
    "ToolExecutor",
]
