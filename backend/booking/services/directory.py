"""
Professional directory for clients: who offers what, at which price, and how
well they are reviewed.

Service filters (category, price, duration) narrow each professional's active
services; with any of them set, a professional is listed only while at least
one service survives. The rating filter applies to the professional's average
over all of their reviews; professionals with no reviews never pass it.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from sqlalchemy import func
from sqlmodel import Session, select

from ..models import Profile, Service, ServiceReview, UserRole
from .availability import validate_id
from .errors import InvalidInput


@dataclass(frozen=True)
class ProfessionalListing:
    profile: Profile
    services: List[Service]
    average_rating: Optional[float]
    review_count: int


def rating_summary(session: Session, professional_ids: Iterable[str]) -> Dict[str, Tuple[float, int]]:
    ids = list(professional_ids)
    if not ids:
        return {}
    rows = session.exec(
        select(ServiceReview.professional_id, func.avg(ServiceReview.rating), func.count(ServiceReview.id))
        .where(ServiceReview.professional_id.in_(ids))
        .group_by(ServiceReview.professional_id)
    ).all()
    return {pid: (round(float(avg), 2), int(count)) for pid, avg, count in rows}


def _service_matches(
    svc: Service,
    categories: Sequence[str],
    min_price: Optional[float],
    max_price: Optional[float],
    max_duration: Optional[int],
) -> bool:
    if categories and svc.category_id not in categories:
        return False
    if min_price is not None and svc.price < min_price:
        return False
    if max_price is not None and svc.price > max_price:
        return False
    if max_duration is not None and svc.duration > max_duration:
        return False
    return True


def search_professionals(
    session: Session,
    search: Optional[str] = None,
    categories: Optional[Sequence[str]] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    min_rating: Optional[float] = None,
    max_duration: Optional[int] = None,
) -> List[ProfessionalListing]:
    categories = list(categories or [])
    for category_id in categories:
        validate_id(category_id, "category")
    if min_price is not None and max_price is not None and min_price > max_price:
        raise InvalidInput("min_price must not exceed max_price")
    if min_rating is not None and not 0 <= min_rating <= 5:
        raise InvalidInput("min_rating must be between 0 and 5")
    if max_duration is not None and max_duration <= 0:
        raise InvalidInput("max_duration must be a positive number of minutes")

    profiles = session.exec(
        select(Profile).where(Profile.user_role == UserRole.professional).order_by(Profile.full_name)
    ).all()
    if not profiles:
        return []
    ids = [p.id for p in profiles]

    services = session.exec(
        select(Service)
        .where(Service.professional_id.in_(ids), Service.is_active == True)  # noqa: E712
        .order_by(Service.name)
    ).all()
    offered: Dict[str, List[Service]] = defaultdict(list)
    for svc in services:
        if _service_matches(svc, categories, min_price, max_price, max_duration):
            offered[svc.professional_id].append(svc)

    narrowing = bool(categories) or any(v is not None for v in (min_price, max_price, max_duration))
    term = (search or "").strip().lower()
    ratings = rating_summary(session, ids)

    listings: List[ProfessionalListing] = []
    for profile in profiles:
        own = offered.get(profile.id, [])
        if narrowing and not own:
            continue
        # free text matches the professional's name or one of the services shown
        if term and term not in profile.full_name.lower() and not any(term in s.name.lower() for s in own):
            continue
        average, count = ratings.get(profile.id, (None, 0))
        if min_rating and (average is None or average < min_rating):
            continue
        listings.append(ProfessionalListing(profile=profile, services=own, average_rating=average, review_count=count))
    return listings
