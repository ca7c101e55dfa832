from __future__ import annotations

import logging
import uuid
from datetime import date, time
from typing import List, Optional

from sqlmodel import Session, select

from ..models import ProfessionalAvailability, TimeSlot
from .actors import Actor, require_professional
from .errors import InvalidInput, NotFound, PermissionDenied

logger = logging.getLogger(__name__)


def _check_window(day_of_week: int, start_time: time, end_time: time, is_available: bool) -> None:
    if not 0 <= day_of_week <= 6:
        raise InvalidInput("day_of_week must be between 0 (Sunday) and 6 (Saturday)")
    if is_available and start_time >= end_time:
        raise InvalidInput("start_time must be before end_time")


def list_rules(session: Session, professional_id: str) -> List[ProfessionalAvailability]:
    stmt = (
        select(ProfessionalAvailability)
        .where(ProfessionalAvailability.professional_id == professional_id)
        .order_by(ProfessionalAvailability.day_of_week, ProfessionalAvailability.start_time)
    )
    return list(session.exec(stmt).all())


def add_rule(
    session: Session,
    actor: Actor,
    day_of_week: int,
    start_time: time,
    end_time: time,
    is_available: bool = True,
) -> ProfessionalAvailability:
    require_professional(actor)
    _check_window(day_of_week, start_time, end_time, is_available)

    rule = ProfessionalAvailability(
        id="avl_" + uuid.uuid4().hex[:12],
        professional_id=actor.id,
        day_of_week=day_of_week,
        start_time=start_time,
        end_time=end_time,
        is_available=is_available,
    )
    session.add(rule)
    session.commit()
    session.refresh(rule)
    logger.info("Added availability %s for %s (day=%d)", rule.id, actor.id, day_of_week)
    return rule


def _owned_rule(session: Session, actor: Actor, rule_id: str) -> ProfessionalAvailability:
    require_professional(actor)
    rule = session.get(ProfessionalAvailability, rule_id)
    if not rule:
        raise NotFound("Availability rule not found")
    if rule.professional_id != actor.id:
        raise PermissionDenied("Availability rule belongs to another professional")
    return rule


def update_rule(
    session: Session,
    actor: Actor,
    rule_id: str,
    day_of_week: Optional[int] = None,
    start_time: Optional[time] = None,
    end_time: Optional[time] = None,
    is_available: Optional[bool] = None,
) -> ProfessionalAvailability:
    rule = _owned_rule(session, actor, rule_id)
    if day_of_week is not None:
        rule.day_of_week = day_of_week
    if start_time is not None:
        rule.start_time = start_time
    if end_time is not None:
        rule.end_time = end_time
    if is_available is not None:
        rule.is_available = is_available
    _check_window(rule.day_of_week, rule.start_time, rule.end_time, rule.is_available)

    session.add(rule)
    session.commit()
    session.refresh(rule)
    return rule


def delete_rule(session: Session, actor: Actor, rule_id: str) -> None:
    rule = _owned_rule(session, actor, rule_id)
    session.delete(rule)
    session.commit()


def block_time(
    session: Session,
    actor: Actor,
    on_date: date,
    start_time: time,
    end_time: time,
    reason: Optional[str] = None,
) -> TimeSlot:
    require_professional(actor)
    if start_time >= end_time:
        raise InvalidInput("start_time must be before end_time")

    block = TimeSlot(
        id="blk_" + uuid.uuid4().hex[:12],
        professional_id=actor.id,
        date=on_date,
        start_time=start_time,
        end_time=end_time,
        is_blocked=True,
        reason=reason,
    )
    session.add(block)
    session.commit()
    session.refresh(block)
    logger.info("Blocked %s %s-%s for %s", on_date, start_time, end_time, actor.id)
    return block


def list_blocks(session: Session, professional_id: str, start: date, end: date) -> List[TimeSlot]:
    if end < start:
        raise InvalidInput("end date must not be before start date")
    stmt = (
        select(TimeSlot)
        .where(
            TimeSlot.professional_id == professional_id,
            TimeSlot.date >= start,
            TimeSlot.date <= end,
        )
        .order_by(TimeSlot.date, TimeSlot.start_time)
    )
    return list(session.exec(stmt).all())


def unblock(session: Session, actor: Actor, block_id: str) -> None:
    require_professional(actor)
    block = session.get(TimeSlot, block_id)
    if not block:
        raise NotFound("Blocked slot not found")
    if block.professional_id != actor.id:
        raise PermissionDenied("Blocked slot belongs to another professional")
    session.delete(block)
    session.commit()
