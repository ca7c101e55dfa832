from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, date, time
from typing import AbstractSet, List, Optional, Protocol

CANCELLED = "cancelled"


@dataclass(frozen=True)
class WeeklyAvailabilityRule:
    professional_id: str
    day_of_week: int  # 0=Sunday ... 6=Saturday
    start_time: time
    end_time: time
    is_available: bool


@dataclass(frozen=True)
class BlockedSlot:
    professional_id: str
    date: date
    start_time: time
    end_time: time
    reason: Optional[str] = None


@dataclass(frozen=True)
class ExistingAppointment:
    professional_id: str
    service_id: str
    start: datetime
    status: str
    # only consulted by the overlap conflict policy
    duration_minutes: Optional[int] = None


@dataclass(frozen=True)
class ServiceInfo:
    id: str
    professional_id: str
    duration_minutes: int
    price: float
    is_active: bool


@dataclass(frozen=True)
class Slot:
    time: str  # HH:MM
    available: bool


class AvailabilitySource(Protocol):
    """Read-only view of the store consumed by the availability engine.

    Implementations raise DataAccessFailure when the store cannot answer.
    """

    def get_weekly_availability(self, professional_id: str, day_of_week: int) -> Optional[WeeklyAvailabilityRule]:
        ...

    def get_blocked_slots(self, professional_id: str, on_date: date) -> List[BlockedSlot]:
        ...

    def get_appointments(
        self,
        professional_id: str,
        on_date: date,
        exclude_statuses: AbstractSet[str] = frozenset({CANCELLED}),
    ) -> List[ExistingAppointment]:
        ...

    def get_service(self, service_id: str) -> Optional[ServiceInfo]:
        ...
