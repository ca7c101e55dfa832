"""
Appointment write path.

The availability engine is advisory; the double-booking guard lives here:
a professional cannot hold two non-cancelled appointments starting at the
same minute.
"""
from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time
from typing import List, Optional

from sqlmodel import Session, select

from .. import config
from ..models import Appointment, AppointmentStatus, ConfirmationState, Service
from .actors import Actor, require_client
from .adapter_sql import SqlAdapter, day_bounds
from .availability import compute_available_slots, validate_id
from .errors import InvalidInput, NotFound, PermissionDenied, SlotUnavailable
from .notifications import (
    APPOINTMENT_CANCELLED,
    APPOINTMENT_CONFIRMED,
    APPOINTMENT_NO_SHOW,
    NotificationSink,
    notify_appointment_created,
)

logger = logging.getLogger(__name__)

TERMINAL = {AppointmentStatus.completed, AppointmentStatus.cancelled}

# target status -> roles allowed to set it
TRANSITIONS = {
    AppointmentStatus.confirmed: {"professional"},
    AppointmentStatus.completed: {"professional"},
    AppointmentStatus.cancelled: {"professional", "client"},
}


def parse_hhmm(value: str) -> time:
    try:
        parsed = datetime.strptime(value.strip(), "%H:%M")
    except (AttributeError, ValueError):
        raise InvalidInput(f"Invalid time: {value!r}, expected HH:MM")
    return parsed.time()


def find_conflict(session: Session, professional_id: str, start: datetime) -> Optional[Appointment]:
    start = start.replace(second=0, microsecond=0)
    day_start, day_end = day_bounds(start.date())
    rows = session.exec(
        select(Appointment).where(
            Appointment.professional_id == professional_id,
            Appointment.appointment_date >= day_start,
            Appointment.appointment_date < day_end,
            Appointment.status != AppointmentStatus.cancelled,
        )
    ).all()
    for appt in rows:
        if appt.appointment_date.replace(second=0, microsecond=0) == start:
            return appt
    return None


def book_appointment(
    session: Session,
    sink: NotificationSink,
    actor: Actor,
    professional_id: str,
    service_id: str,
    on_date: date,
    start: str,
    notes: Optional[str] = None,
) -> Appointment:
    require_client(actor)
    validate_id(professional_id, "professional_id")
    validate_id(service_id, "service_id")
    start_time = parse_hhmm(start)
    starts_at = datetime.combine(on_date, start_time)
    if starts_at < datetime.now():
        raise InvalidInput(f"Cannot book a time in the past: {starts_at:%Y-%m-%d %H:%M}")

    service = session.get(Service, service_id)
    if not service or service.professional_id != professional_id or not service.is_active:
        raise NotFound("Service not found for this professional")

    slots = compute_available_slots(
        SqlAdapter(session),
        professional_id,
        on_date,
        service_id,
        step_minutes=config.SLOT_STEP_MINUTES,
        conflict_policy=config.CONFLICT_POLICY,
    )
    label = start_time.strftime("%H:%M")
    slot = next((s for s in slots if s.time == label), None)
    if slot is None:
        raise SlotUnavailable(f"{label} is not a bookable time on {on_date}")
    if not slot.available:
        raise SlotUnavailable("Slot already booked or blocked")

    # re-check against the store right before writing
    if find_conflict(session, professional_id, starts_at):
        raise SlotUnavailable("Slot already booked")

    appt = Appointment(
        id="appt_" + uuid.uuid4().hex[:12],
        client_id=actor.id,
        professional_id=professional_id,
        service_id=service_id,
        appointment_date=starts_at,
        notes=notes or None,
        status=AppointmentStatus.pending,
        appointment_confirmation=ConfirmationState.pending,
    )
    session.add(appt)
    session.commit()
    session.refresh(appt)
    logger.info("Booked %s: %s with %s at %s", appt.id, actor.id, professional_id, starts_at)

    notify_appointment_created(sink, appt)
    return appt


def change_status(
    session: Session,
    sink: NotificationSink,
    actor: Actor,
    appointment_id: str,
    status: Optional[AppointmentStatus] = None,
    confirmation: Optional[ConfirmationState] = None,
) -> Appointment:
    appt = session.get(Appointment, appointment_id)
    if not appt:
        raise NotFound("Appointment not found")
    if actor.id not in (appt.client_id, appt.professional_id):
        raise PermissionDenied("Not a participant of this appointment")
    if status is None and confirmation is None:
        raise InvalidInput("Nothing to change")

    role = "professional" if actor.id == appt.professional_id else "client"
    current = AppointmentStatus(appt.status)
    if current in TERMINAL:
        raise InvalidInput(f"Appointment is already {current.value}")

    events: List[str] = []
    if status is not None and status != current:
        if status not in TRANSITIONS:
            raise InvalidInput(f"Cannot move appointment back to {status.value}")
        if role not in TRANSITIONS[status]:
            raise PermissionDenied(f"A {role} cannot set status {status.value}")
        appt.status = status
        if status == AppointmentStatus.confirmed:
            appt.appointment_confirmation = ConfirmationState.confirmed
            events.append(APPOINTMENT_CONFIRMED)
        elif status == AppointmentStatus.cancelled:
            events.append(APPOINTMENT_CANCELLED)

    if confirmation is not None and confirmation != appt.appointment_confirmation:
        if role != "professional":
            raise PermissionDenied("Only the professional can set confirmation")
        appt.appointment_confirmation = confirmation
        if confirmation == ConfirmationState.confirmed and APPOINTMENT_CONFIRMED not in events:
            events.append(APPOINTMENT_CONFIRMED)
        elif confirmation == ConfirmationState.no_show:
            events.append(APPOINTMENT_NO_SHOW)

    appt.updated_at = datetime.utcnow()
    session.add(appt)
    session.commit()
    session.refresh(appt)

    # the other participant hears about it
    recipient = appt.client_id if role == "professional" else appt.professional_id
    for ev in events:
        sink.emit(recipient, ev, appt.id)
    return appt


def list_appointments(
    session: Session,
    actor: Actor,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    include_cancelled: bool = True,
) -> List[Appointment]:
    stmt = select(Appointment)
    if actor.role.value == "professional":
        stmt = stmt.where(Appointment.professional_id == actor.id)
    elif actor.role.value == "client":
        stmt = stmt.where(Appointment.client_id == actor.id)
    if start is not None:
        stmt = stmt.where(Appointment.appointment_date >= start)
    if end is not None:
        stmt = stmt.where(Appointment.appointment_date < end)
    if not include_cancelled:
        stmt = stmt.where(Appointment.status != AppointmentStatus.cancelled)
    return list(session.exec(stmt.order_by(Appointment.appointment_date)).all())
