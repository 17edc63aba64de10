"""Cart identity resolution.

A cart belongs either to an authenticated user or to a guest session.
The identity is resolved once per request at the HTTP boundary and then
passed explicitly to every cart operation.

Example:
    identity = resolve_identity(user_id=None, session_id="9f2c...")
    identity.key  # "guest:9f2c..."
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from velostore.core.errors import IdentityUnresolvable


class IdentityKind(str, Enum):
    """Who owns a cart."""

    USER = "user"
    GUEST = "guest"


@dataclass(frozen=True)
class CartIdentity:
    """Owner of a cart.

    Attributes:
        kind: Authenticated user or guest session
        value: User id or session id
    """

    kind: IdentityKind
    value: str

    @property
    def key(self) -> str:
        """Identity string used in cache keys and logs."""
        return f"{self.kind.value}:{self.value}"

    @property
    def is_authenticated(self) -> bool:
        return self.kind is IdentityKind.USER

    @classmethod
    def user(cls, user_id: str) -> "CartIdentity":
        return cls(IdentityKind.USER, user_id)

    @classmethod
    def guest(cls, session_id: str) -> "CartIdentity":
        return cls(IdentityKind.GUEST, session_id)

    def __str__(self) -> str:
        return self.key


def resolve_identity(user_id: str | None, session_id: str | None) -> CartIdentity:
    """Resolve the cart owner for the current request.

    Args:
        user_id: Authenticated user id, if any
        session_id: Guest session id, if any

    Returns:
        A user identity when authenticated, otherwise a guest identity

    Raises:
        IdentityUnresolvable: If neither is available
    """
    if user_id and user_id.strip():
        return CartIdentity.user(user_id.strip())
    if session_id and session_id.strip():
        return CartIdentity.guest(session_id.strip())
    raise IdentityUnresolvable("No authenticated user and no guest session")
