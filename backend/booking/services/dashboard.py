from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any, Callable, Dict

from sqlmodel import Session, select

from ..models import Profile, UserRole
from .actors import Actor
from .adapter_sql import day_bounds
from .booking import list_appointments
from .catalog import list_services
from .notifications import unread_count
from .rules import list_rules


def _client_view(session: Session, actor: Actor, now: datetime) -> Dict[str, Any]:
    return {
        "upcoming_appointments": list_appointments(session, actor, start=now, include_cancelled=False),
    }


def _professional_view(session: Session, actor: Actor, now: datetime) -> Dict[str, Any]:
    start, end = day_bounds(now.date())
    return {
        "today_appointments": list_appointments(session, actor, start=start, end=end, include_cancelled=False),
        "upcoming_appointments": list_appointments(
            session, actor, start=end, end=end + timedelta(days=7), include_cancelled=False
        ),
        "services": list_services(session, actor.id, active_only=False),
        "availability": list_rules(session, actor.id),
    }


def _admin_view(session: Session, actor: Actor, now: datetime) -> Dict[str, Any]:
    profiles = session.exec(select(Profile).order_by(Profile.full_name)).all()
    directory: Dict[str, list] = {r.value: [] for r in UserRole}
    for p in profiles:
        directory[UserRole(p.user_role).value].append(p)
    return {"directory": directory}


VIEWS: Dict[UserRole, Callable[[Session, Actor, datetime], Dict[str, Any]]] = {
    UserRole.client: _client_view,
    UserRole.professional: _professional_view,
    UserRole.admin: _admin_view,
}


def build_dashboard(session: Session, actor: Actor, now: datetime | None = None) -> Dict[str, Any]:
    """Clients see what is still ahead of `now`; professionals see the whole of today."""
    now = now or datetime.now()
    view = VIEWS[actor.role](session, actor, now)
    view["role"] = actor.role.value
    view["unread_notifications"] = unread_count(session, actor.id)
    return view
