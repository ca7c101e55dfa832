"""
Bookable slot computation for one professional, date and service.

Inputs come from an AvailabilitySource:
- the weekly rule for the date's weekday
- blocked ranges on that date
- non-cancelled appointments on that date
- the service (duration, owner, active flag)

Candidates start at the rule's start time and advance by a fixed step
(30 minutes) regardless of the service duration. A candidate is emitted only
if it ends on or before the rule's end time. Nothing configured means an
empty list; store failures propagate as DataAccessFailure.
"""
from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Union

from .adapter_base import CANCELLED, AvailabilitySource, BlockedSlot, ExistingAppointment, Slot
from .errors import InvalidInput, MalformedData

logger = logging.getLogger(__name__)

DEFAULT_STEP_MINUTES = 30
EXACT_START = "exact_start"
OVERLAP = "overlap"
CONFLICT_POLICIES = (EXACT_START, OVERLAP)
MAX_RANGE_DAYS = 31

_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,64}$")

DateLike = Union[date, datetime, str]


def validate_id(value: str, field: str) -> str:
    if not isinstance(value, str) or not _ID_RE.match(value):
        raise InvalidInput(f"Invalid {field}: {value!r}")
    return value


def parse_date(value: DateLike) -> date:
    """Accept a date, a datetime (time-of-day dropped) or YYYY-MM-DD."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidInput(f"Invalid date: {value!r}")


def weekday_index(d: date) -> int:
    # 0=Sunday ... 6=Saturday
    return (d.weekday() + 1) % 7


def to_minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def format_minutes(m: int) -> str:
    return f"{m // 60:02d}:{m % 60:02d}"


def _is_blocked(start: int, end: int, blocks: Iterable[BlockedSlot], policy: str) -> bool:
    for b in blocks:
        b_start, b_end = to_minutes(b.start_time), to_minutes(b.end_time)
        if policy == OVERLAP:
            if start < b_end and end > b_start:
                return True
        elif b_start <= start < b_end:
            return True
    return False


def _is_booked(start: int, end: int, appointments: Iterable[ExistingAppointment], duration: int, policy: str) -> bool:
    for a in appointments:
        # seconds are truncated: 10:00:45 occupies 10:00
        a_start = to_minutes(a.start.time())
        if policy == OVERLAP:
            a_end = a_start + (a.duration_minutes or duration)
            if start < a_end and end > a_start:
                return True
        elif a_start == start:
            return True
    return False


def compute_available_slots(
    source: AvailabilitySource,
    professional_id: str,
    target_date: DateLike,
    service_id: str,
    *,
    step_minutes: int = DEFAULT_STEP_MINUTES,
    conflict_policy: str = EXACT_START,
) -> List[Slot]:
    validate_id(professional_id, "professional_id")
    validate_id(service_id, "service_id")
    day = parse_date(target_date)
    if step_minutes <= 0:
        raise InvalidInput("step_minutes must be positive")
    if conflict_policy not in CONFLICT_POLICIES:
        raise InvalidInput(f"Unknown conflict policy: {conflict_policy!r}")

    rule = source.get_weekly_availability(professional_id, weekday_index(day))
    if rule is None or not rule.is_available:
        return []

    service = source.get_service(service_id)
    if service is None or not service.is_active or service.professional_id != professional_id:
        return []
    duration = service.duration_minutes
    if not isinstance(duration, int) or duration <= 0:
        raise MalformedData(f"Service {service_id} has malformed duration {duration!r}")

    blocks = source.get_blocked_slots(professional_id, day)
    appointments = [
        a for a in source.get_appointments(professional_id, day, exclude_statuses=frozenset({CANCELLED}))
        if a.status != CANCELLED
    ]

    window_end = to_minutes(rule.end_time)
    cursor = to_minutes(rule.start_time)
    slots: List[Slot] = []
    while cursor + duration <= window_end:
        end = cursor + duration
        taken = _is_blocked(cursor, end, blocks, conflict_policy) or _is_booked(
            cursor, end, appointments, duration, conflict_policy
        )
        slots.append(Slot(time=format_minutes(cursor), available=not taken))
        cursor += step_minutes

    logger.debug(
        "Computed %d slots for %s on %s (service=%s, blocks=%d, appointments=%d)",
        len(slots), professional_id, day, service_id, len(blocks), len(appointments),
    )
    return slots


def compute_slots_for_range(
    source: AvailabilitySource,
    professional_id: str,
    start_date: DateLike,
    days: int,
    service_id: str,
    **kwargs,
) -> Dict[str, List[Slot]]:
    """
    Slots for consecutive days, keyed by YYYY-MM-DD.
    Days without any candidate are omitted.
    """
    start = parse_date(start_date)
    if not isinstance(days, int) or not 1 <= days <= MAX_RANGE_DAYS:
        raise InvalidInput(f"days must be between 1 and {MAX_RANGE_DAYS}")

    result: Dict[str, List[Slot]] = {}
    for offset in range(days):
        d = start + timedelta(days=offset)
        slots = compute_available_slots(source, professional_id, d, service_id, **kwargs)
        if slots:
            result[d.isoformat()] = slots
    return result
