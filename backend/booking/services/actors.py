from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlmodel import Session

from ..models import Profile, UserRole
from .errors import PermissionDenied


@dataclass(frozen=True)
class Actor:
    """The profile acting on a request. Passed explicitly, never stored globally."""
    id: str
    role: UserRole
    full_name: str = ""


def resolve_actor(session: Session, profile_id: Optional[str]) -> Optional[Actor]:
    if not profile_id:
        return None
    profile = session.get(Profile, profile_id)
    if not profile:
        return None
    return Actor(id=profile.id, role=UserRole(profile.user_role), full_name=profile.full_name)


def require_role(actor: Actor, *roles: UserRole) -> Actor:
    if actor.role not in roles:
        allowed = ", ".join(r.value for r in roles)
        raise PermissionDenied(f"Requires role: {allowed}")
    return actor


def require_professional(actor: Actor) -> Actor:
    return require_role(actor, UserRole.professional)


def require_client(actor: Actor) -> Actor:
    return require_role(actor, UserRole.client)
