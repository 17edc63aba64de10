"""HTTP middleware for VeloStore."""

from velostore.api.middleware.correlation import CorrelationMiddleware
from velostore.api.middleware.session import SessionMiddleware

__all__ = ["CorrelationMiddleware", "SessionMiddleware"]
