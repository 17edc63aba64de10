"""Error taxonomy for VeloStore.

Tier and source failures are absorbed by the services that own them;
only contract violations, identity failures and failed cart writes are
meant to reach callers.
"""

from __future__ import annotations


class VeloStoreError(Exception):
    """Base class for all VeloStore errors."""


class ContractViolation(VeloStoreError, ValueError):
    """Caller passed an argument the operation never accepts.

    Examples: a negative price, a non-positive product id.
    """


class IdentityUnresolvable(VeloStoreError, PermissionError):
    """Neither an authenticated user nor a guest session is available."""


class CacheTierError(VeloStoreError):
    """A cache tier could not be reached or answered with an error."""

    def __init__(self, tier: str, operation: str, key: str, cause: BaseException | None = None):
        self.tier = tier
        self.operation = operation
        self.key = key
        self.cause = cause
        detail = f": {cause}" if cause else ""
        super().__init__(f"{tier} cache {operation} failed for '{key}'{detail}")


class CartUnavailable(VeloStoreError):
    """A cart mutation could not be persisted."""

    def __init__(self, identity: str, operation: str):
        self.identity = identity
        self.operation = operation
        super().__init__(f"Cart {operation} failed for {identity}")


class ReasoningEngineError(VeloStoreError):
    """The configured reasoning engine failed to produce a completion."""

    def __init__(self, provider: str, message: str):
        self.provider = provider
        super().__init__(f"{provider}: {message}")
