from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlmodel import Session, select

from ..models import Service, ServiceCategory, UserRole
from .actors import Actor, require_professional, require_role
from .errors import InvalidInput, NotFound, PermissionDenied


def _check(duration: int, price: float) -> None:
    if duration <= 0:
        raise InvalidInput("duration must be a positive number of minutes")
    if price < 0:
        raise InvalidInput("price must not be negative")


def _check_category(session: Session, category_id: Optional[str]) -> None:
    if category_id and not session.get(ServiceCategory, category_id):
        raise NotFound(f"Category {category_id} not found")


def list_categories(session: Session) -> List[ServiceCategory]:
    return list(session.exec(select(ServiceCategory).order_by(ServiceCategory.name)).all())


def create_category(session: Session, actor: Actor, name: str, color: Optional[str] = None) -> ServiceCategory:
    require_role(actor, UserRole.admin)
    cat = ServiceCategory(id="cat_" + uuid.uuid4().hex[:12], name=name, color=color)
    session.add(cat)
    session.commit()
    session.refresh(cat)
    return cat


def list_services(session: Session, professional_id: str, active_only: bool = True) -> List[Service]:
    stmt = select(Service).where(Service.professional_id == professional_id)
    if active_only:
        stmt = stmt.where(Service.is_active == True)  # noqa: E712
    return list(session.exec(stmt.order_by(Service.name)).all())


def create_service(
    session: Session,
    actor: Actor,
    name: str,
    duration: int,
    price: float,
    description: Optional[str] = None,
    category_id: Optional[str] = None,
) -> Service:
    require_professional(actor)
    _check(duration, price)
    _check_category(session, category_id)
    svc = Service(
        id="svc_" + uuid.uuid4().hex[:12],
        professional_id=actor.id,
        name=name,
        description=description,
        duration=duration,
        price=price,
        category_id=category_id,
    )
    session.add(svc)
    session.commit()
    session.refresh(svc)
    return svc


def update_service(session: Session, actor: Actor, service_id: str, **changes) -> Service:
    """Apply non-None changes; is_active=False deactivates the service."""
    require_professional(actor)
    svc = session.get(Service, service_id)
    if not svc:
        raise NotFound("Service not found")
    if svc.professional_id != actor.id:
        raise PermissionDenied("Service belongs to another professional")

    for field in ("name", "description", "duration", "price", "category_id", "is_active"):
        value = changes.get(field)
        if value is not None:
            setattr(svc, field, value)
    _check(svc.duration, svc.price)
    _check_category(session, svc.category_id)
    svc.updated_at = datetime.utcnow()

    session.add(svc)
    session.commit()
    session.refresh(svc)
    return svc
