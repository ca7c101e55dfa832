from __future__ import annotations

import uuid
from typing import List, Optional

from sqlmodel import Session, select

from ..models import Appointment, AppointmentStatus, ServiceReview, UserRole
from .actors import Actor, require_client
from .errors import Conflict, InvalidInput, NotFound, PermissionDenied


def create_review(
    session: Session,
    actor: Actor,
    appointment_id: str,
    rating: int,
    comment: Optional[str] = None,
) -> ServiceReview:
    require_client(actor)
    if not 1 <= rating <= 5:
        raise InvalidInput("rating must be between 1 and 5")

    appt = session.get(Appointment, appointment_id)
    if not appt:
        raise NotFound("Appointment not found")
    if appt.client_id != actor.id:
        raise PermissionDenied("Only the client of the appointment can review it")
    if AppointmentStatus(appt.status) != AppointmentStatus.completed:
        raise InvalidInput("Only completed appointments can be reviewed")

    existing = session.exec(
        select(ServiceReview).where(ServiceReview.appointment_id == appointment_id)
    ).first()
    if existing:
        raise Conflict("Appointment already reviewed")

    review = ServiceReview(
        id="rev_" + uuid.uuid4().hex[:12],
        client_id=actor.id,
        professional_id=appt.professional_id,
        service_id=appt.service_id,
        appointment_id=appt.id,
        rating=rating,
        comment=comment or None,
    )
    session.add(review)
    session.commit()
    session.refresh(review)
    return review


def list_reviews(session: Session, actor: Actor) -> List[ServiceReview]:
    stmt = select(ServiceReview)
    # clients see what they wrote, professionals what they received
    if actor.role == UserRole.client:
        stmt = stmt.where(ServiceReview.client_id == actor.id)
    elif actor.role == UserRole.professional:
        stmt = stmt.where(ServiceReview.professional_id == actor.id)
    return list(session.exec(stmt.order_by(ServiceReview.created_at.desc())).all())
