"""Guest session and user extraction middleware.

Every request outside the excluded paths ends up with:
- request.state.session_id: the guest session id from the session cookie,
  newly issued when the browser has none
- request.state.user_id: the authenticated user id set by the upstream
  authenticator in a header, or None
- request.state.identity: the CartIdentity derived from the two, which
  CorrelationMiddleware binds to the logging context

Example:
    app.add_middleware(SessionMiddleware)
"""

from __future__ import annotations

import logging
import secrets
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from velostore.config import settings
from velostore.core.identity import resolve_identity

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_PATHS = ("/health", "/docs", "/redoc", "/openapi.json")


def new_session_id() -> str:
    return secrets.token_urlsafe(24)


class SessionMiddleware(BaseHTTPMiddleware):
    """Resolves the guest session and authenticated user for each request.

    Args:
        app: The ASGI application
        cookie_name: Cookie carrying the guest session id
        cookie_max_age: Lifetime of a newly issued cookie in seconds
        user_header: Header carrying the authenticated user id
        secure_cookie: Mark the cookie Secure (HTTPS only)
        excluded_paths: Path prefixes that never get a session
    """

    def __init__(
        self,
        app: Any,
        cookie_name: str | None = None,
        cookie_max_age: int | None = None,
        user_header: str | None = None,
        secure_cookie: bool | None = None,
        excluded_paths: tuple[str, ...] = DEFAULT_EXCLUDED_PATHS,
    ) -> None:
        super().__init__(app)
        self.cookie_name = cookie_name or settings.session_cookie_name
        self.cookie_max_age = cookie_max_age or settings.session_cookie_max_age
        self.user_header = user_header or settings.user_id_header
        self.secure_cookie = settings.env != "dev" if secure_cookie is None else secure_cookie
        self.excluded_paths = excluded_paths

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if any(request.url.path.startswith(path) for path in self.excluded_paths):
            return await call_next(request)

        session_id = request.cookies.get(self.cookie_name)
        issued = False
        if not session_id:
            session_id = new_session_id()
            issued = True

        user_id = (request.headers.get(self.user_header) or "").strip() or None

        request.state.session_id = session_id
        request.state.user_id = user_id
        request.state.identity = resolve_identity(user_id, session_id)

        response = await call_next(request)

        if issued:
            response.set_cookie(
                self.cookie_name,
                session_id,
                max_age=self.cookie_max_age,
                httponly=True,
                samesite="lax",
                secure=self.secure_cookie,
            )
            logger.debug("Issued guest session cookie")
        return response
