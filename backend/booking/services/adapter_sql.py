from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import AbstractSet, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from ..models import Appointment, ProfessionalAvailability, Service, TimeSlot
from .adapter_base import (
    CANCELLED,
    AvailabilitySource,
    BlockedSlot,
    ExistingAppointment,
    ServiceInfo,
    WeeklyAvailabilityRule,
)
from .errors import DataAccessFailure

logger = logging.getLogger(__name__)


def day_bounds(on_date: date) -> tuple[datetime, datetime]:
    start = datetime.combine(on_date, time.min)
    return start, start + timedelta(days=1)


class SqlAdapter(AvailabilitySource):
    """
    AvailabilitySource backed by the SQLModel tables.
    - several rules on one weekday: the earliest available one wins
    - store errors are rolled back and re-raised as DataAccessFailure
    """

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _reading(self, what: str):
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.warning("Store read failed (%s): %s", what, exc)
            raise DataAccessFailure(f"Could not load {what}") from exc

    def get_weekly_availability(self, professional_id: str, day_of_week: int) -> Optional[WeeklyAvailabilityRule]:
        with self._reading("weekly availability"):
            rows = self.session.exec(
                select(ProfessionalAvailability)
                .where(
                    ProfessionalAvailability.professional_id == professional_id,
                    ProfessionalAvailability.day_of_week == day_of_week,
                )
                .order_by(ProfessionalAvailability.start_time)
            ).all()

        if not rows:
            return None
        row = next((r for r in rows if r.is_available), rows[0])
        return WeeklyAvailabilityRule(
            professional_id=row.professional_id,
            day_of_week=row.day_of_week,
            start_time=row.start_time,
            end_time=row.end_time,
            is_available=row.is_available,
        )

    def get_blocked_slots(self, professional_id: str, on_date: date) -> List[BlockedSlot]:
        with self._reading("blocked slots"):
            rows = self.session.exec(
                select(TimeSlot).where(
                    TimeSlot.professional_id == professional_id,
                    TimeSlot.date == on_date,
                    TimeSlot.is_blocked == True,  # noqa: E712
                )
            ).all()

        return [
            BlockedSlot(
                professional_id=r.professional_id,
                date=r.date,
                start_time=r.start_time,
                end_time=r.end_time,
                reason=r.reason,
            )
            for r in rows
        ]

    def get_appointments(
        self,
        professional_id: str,
        on_date: date,
        exclude_statuses: AbstractSet[str] = frozenset({CANCELLED}),
    ) -> List[ExistingAppointment]:
        day_start, day_end = day_bounds(on_date)
        with self._reading("appointments"):
            stmt = (
                select(Appointment, Service.duration)
                .join(Service, Service.id == Appointment.service_id, isouter=True)
                .where(
                    Appointment.professional_id == professional_id,
                    Appointment.appointment_date >= day_start,
                    Appointment.appointment_date < day_end,
                )
            )
            if exclude_statuses:
                stmt = stmt.where(Appointment.status.not_in(list(exclude_statuses)))
            rows = self.session.exec(stmt).all()

        return [
            ExistingAppointment(
                professional_id=appt.professional_id,
                service_id=appt.service_id,
                start=appt.appointment_date,
                status=getattr(appt.status, "value", appt.status),
                duration_minutes=duration,
            )
            for appt, duration in rows
        ]

    def get_service(self, service_id: str) -> Optional[ServiceInfo]:
        with self._reading("service"):
            svc = self.session.get(Service, service_id)

        if not svc:
            return None
        return ServiceInfo(
            id=svc.id,
            professional_id=svc.professional_id,
            duration_minutes=svc.duration,
            price=svc.price,
            is_active=bool(svc.is_active),
        )
