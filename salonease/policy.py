"""Authorization decisions: who may act on what.

Every check is a pure function of the acting identity and the resource's
owner id / role requirement. ``require`` raises ``AuthorizationError``
when the decision is negative.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .enums import Role
from .errors import AuthorizationError


@dataclass(frozen=True)
class Actor:
    id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


def can_act(
    actor: Actor,
    owner_id: int | Iterable[int] | None = None,
    allowed_roles: Iterable[str] | None = None,
) -> bool:
    """Decide whether ``actor`` may act on a resource.

    ``allowed_roles`` gates by role regardless of ownership. ``owner_id`` may
    be a single id or several (a booking is "owned" by its customer and by
    the salon's owner). Admins pass every ownership check; they pass a role
    gate only when ``admin`` is among the allowed roles.
    """
    if allowed_roles is not None:
        if actor.role not in {getattr(role, "value", role) for role in allowed_roles}:
            return False
    if owner_id is None:
        return True
    if actor.is_admin:
        return True
    owners = {owner_id} if isinstance(owner_id, int) else set(owner_id)
    return actor.id in owners


def require(
    actor: Actor,
    owner_id: int | Iterable[int] | None = None,
    allowed_roles: Iterable[str] | None = None,
    message: str = "Not authorized",
) -> None:
    if not can_act(actor, owner_id=owner_id, allowed_roles=allowed_roles):
        raise AuthorizationError(message)


def require_owner(actor: Actor, owner_id: int, message: str = "Not authorized") -> None:
    """Ownership check that does not extend to admins."""
    if actor.id != owner_id:
        raise AuthorizationError(message)
