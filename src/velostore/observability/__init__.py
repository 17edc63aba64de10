"""Observability module for VeloStore.

Provides structured logging:
- JSON structured logging with correlation IDs
- Human-readable console output for development
- Request-scoped context (request id, cart identity)
"""

from velostore.observability.logging import (
    LogContext,
    configure_logging,
    correlation_id_var,
    identity_var,
    request_id_var,
)

__all__ = [
    "configure_logging",
    "LogContext",
    "request_id_var",
    "correlation_id_var",
    "identity_var",
]
