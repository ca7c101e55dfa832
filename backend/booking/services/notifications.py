from __future__ import annotations

import logging
import uuid
from typing import List, Optional, Protocol

from sqlmodel import Session, select, func

from ..models import Appointment, Notification
from .errors import NotFound, PermissionDenied

logger = logging.getLogger(__name__)

APPOINTMENT_CREATED = "appointment_created"
APPOINTMENT_RECEIVED = "appointment_received"
APPOINTMENT_CONFIRMED = "appointment_confirmed"
APPOINTMENT_CANCELLED = "appointment_cancelled"
APPOINTMENT_NO_SHOW = "appointment_no_show"

MESSAGES = {
    APPOINTMENT_CREATED: ("Appointment created", "Your appointment was created. Wait for the professional to confirm it."),
    APPOINTMENT_RECEIVED: ("New appointment", "You received a new appointment. Confirm it to finish."),
    APPOINTMENT_CONFIRMED: ("Appointment confirmed", "Your appointment was confirmed by the professional."),
    APPOINTMENT_CANCELLED: ("Appointment cancelled", "Your appointment was cancelled."),
    APPOINTMENT_NO_SHOW: ("No-show recorded", "A no-show was recorded for this appointment."),
}


class NotificationSink(Protocol):
    def emit(self, user_id: str, event_type: str, appointment_id: Optional[str] = None) -> None:
        ...


class SqlNotificationSink(NotificationSink):
    """
    Persists one Notification row per event.
    Delivery to connected clients is left to the store's change feed.
    """

    def __init__(self, session: Session):
        self.session = session

    def emit(self, user_id: str, event_type: str, appointment_id: Optional[str] = None) -> None:
        title, message = MESSAGES[event_type]
        n = Notification(
            id="ntf_" + uuid.uuid4().hex[:12],
            user_id=user_id,
            appointment_id=appointment_id,
            type=event_type,
            title=title,
            message=message,
        )
        self.session.add(n)
        self.session.commit()
        logger.info("Notification %s for %s (appointment=%s)", event_type, user_id, appointment_id)


def notify_appointment_created(sink: NotificationSink, appt: Appointment) -> None:
    sink.emit(appt.client_id, APPOINTMENT_CREATED, appt.id)
    sink.emit(appt.professional_id, APPOINTMENT_RECEIVED, appt.id)


def list_notifications(session: Session, user_id: str, unread_only: bool = False) -> List[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(Notification.read == False)  # noqa: E712
    return list(session.exec(stmt.order_by(Notification.created_at.desc())).all())


def unread_count(session: Session, user_id: str) -> int:
    return session.exec(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id,
            Notification.read == False,  # noqa: E712
        )
    ).one()


def mark_read(session: Session, user_id: str, notification_id: str) -> Notification:
    n = session.get(Notification, notification_id)
    if not n:
        raise NotFound("Notification not found")
    if n.user_id != user_id:
        raise PermissionDenied("Notification belongs to another user")
    n.read = True
    session.add(n)
    session.commit()
    session.refresh(n)
    return n
