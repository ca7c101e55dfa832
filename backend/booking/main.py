from __future__ import annotations

from datetime import date, time
import logging
import uuid

from fastapi import FastAPI, Depends, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import Session, select

from . import config
from .db import create_db_and_tables, get_session, engine, verify_connection
from .models import Profile, ProfessionalAvailability, Service, ServiceCategory, UserRole
from .schemas import (
    SlotsResponse, SlotOut, CalendarResponse,
    CreateProfileRequest, ProfileOut,
    CreateServiceRequest, UpdateServiceRequest, ServiceOut,
    CreateCategoryRequest, ServiceCategoryOut, ProfessionalListingOut,
    CreateAvailabilityRequest, UpdateAvailabilityRequest, AvailabilityOut,
    BlockTimeRequest, BlockedSlotOut,
    BookAppointmentRequest, ChangeStatusRequest, AppointmentOut,
    NotificationOut, NotificationsResponse,
    CreateReviewRequest, ReviewOut,
    DashboardResponse,
)
from .services.actors import Actor, resolve_actor
from .services.adapter_sql import SqlAdapter
from .services.availability import compute_available_slots, compute_slots_for_range, parse_date, validate_id
from .services.booking import book_appointment, change_status
from .services.catalog import create_category, create_service, list_categories, list_services, update_service
from .services.dashboard import build_dashboard
from .services.directory import search_professionals
from .services.errors import Conflict, DataAccessFailure, InvalidInput, NotFound, PermissionDenied
from .services.notifications import SqlNotificationSink, list_notifications, mark_read, unread_count
from .services.retry import call_with_retry
from .services.reviews import create_review, list_reviews
from .services import rules

logging.basicConfig(level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)

app = FastAPI(title="Booking Platform API", version="1.0.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error(status_code: int, exc: Exception, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": str(exc), **extra})


@app.exception_handler(InvalidInput)
def invalid_input_handler(request: Request, exc: InvalidInput):
    return _error(422, exc)


@app.exception_handler(NotFound)
def not_found_handler(request: Request, exc: NotFound):
    return _error(404, exc)


@app.exception_handler(PermissionDenied)
def permission_handler(request: Request, exc: PermissionDenied):
    return _error(403, exc)


@app.exception_handler(Conflict)
def conflict_handler(request: Request, exc: Conflict):
    return _error(409, exc)


@app.exception_handler(DataAccessFailure)
def data_access_handler(request: Request, exc: DataAccessFailure):
    logger.error("Data access failure on %s: %s", request.url.path, exc)
    return _error(503, exc, retryable=True)


def seed_demo_data(s: Session) -> None:
    if s.get(Profile, "pro_demo"):
        return
    s.add(Profile(id="pro_demo", user_id="user_pro_demo", full_name="Ana Souza", user_role=UserRole.professional))
    s.add(Profile(id="cli_demo", user_id="user_cli_demo", full_name="Bruno Lima", user_role=UserRole.client))
    s.add(Profile(id="adm_demo", user_id="user_adm_demo", full_name="Admin", user_role=UserRole.admin))
    s.add(ServiceCategory(id="cat_hair", name="Hair", color="#8b5cf6"))
    s.commit()

    s.add(Service(id="svc_haircut", professional_id="pro_demo", name="Haircut", duration=60, price=80.0, category_id="cat_hair"))
    s.add(Service(id="svc_beard", professional_id="pro_demo", name="Beard trim", duration=30, price=40.0, category_id="cat_hair"))
    for day in range(1, 6):  # Monday..Friday
        s.add(ProfessionalAvailability(
            id=f"avl_demo_{day}",
            professional_id="pro_demo",
            day_of_week=day,
            start_time=time(9, 0),
            end_time=time(17, 0),
        ))
    s.commit()
    logger.info("Seeded demo data")


@app.on_event("startup")
def on_startup():
    verify_connection()
    create_db_and_tables()
    if config.SEED_DEMO_DATA:
        with Session(engine) as s:
            seed_demo_data(s)


def current_actor(
    x_profile_id: str | None = Header(default=None),
    session: Session = Depends(get_session),
) -> Actor:
    actor = resolve_actor(session, x_profile_id)
    if actor is None:
        raise HTTPException(status_code=401, detail="Unknown or missing X-Profile-Id")
    return actor


def get_sink(session: Session = Depends(get_session)) -> SqlNotificationSink:
    return SqlNotificationSink(session)


@app.post("/api/profiles", response_model=ProfileOut)
def create_profile(req: CreateProfileRequest, session: Session = Depends(get_session)):
    existing = session.exec(select(Profile).where(Profile.user_id == req.user_id)).first()
    if existing:
        raise HTTPException(status_code=409, detail="Profile already exists for this user")
    prefix = {"client": "cli_", "professional": "pro_", "admin": "adm_"}[req.user_role]
    profile = Profile(
        id=prefix + uuid.uuid4().hex[:12],
        user_id=req.user_id,
        full_name=req.full_name,
        email=req.email,
        phone=req.phone,
        address=req.address,
        user_role=UserRole(req.user_role),
    )
    session.add(profile)
    session.commit()
    session.refresh(profile)
    return profile


@app.get("/api/professionals", response_model=list[ProfessionalListingOut])
def professionals(
    search: str | None = None,
    category: list[str] | None = Query(None),
    min_price: float | None = Query(None, ge=0),
    max_price: float | None = Query(None, ge=0),
    min_rating: float | None = Query(None, ge=0, le=5),
    max_duration: int | None = Query(None, gt=0),
    session: Session = Depends(get_session),
):
    listings = search_professionals(
        session,
        search=search,
        categories=category,
        min_price=min_price,
        max_price=max_price,
        min_rating=min_rating,
        max_duration=max_duration,
    )
    return [
        ProfessionalListingOut(
            id=item.profile.id,
            full_name=item.profile.full_name,
            phone=item.profile.phone,
            average_rating=item.average_rating,
            review_count=item.review_count,
            services=[ServiceOut.model_validate(s) for s in item.services],
        )
        for item in listings
    ]


@app.get("/api/professionals/{professional_id}/slots", response_model=SlotsResponse)
def available_slots(
    professional_id: str,
    service_id: str,
    on_date: str = Query(..., alias="date"),
    session: Session = Depends(get_session),
):
    day = parse_date(on_date)
    slots = call_with_retry(
        compute_available_slots,
        SqlAdapter(session),
        professional_id,
        day,
        service_id,
        step_minutes=config.SLOT_STEP_MINUTES,
        conflict_policy=config.CONFLICT_POLICY,
    )
    return SlotsResponse(
        professional_id=professional_id,
        date=day,
        service_id=service_id,
        slots=[SlotOut(time=s.time, available=s.available) for s in slots],
    )


@app.get("/api/professionals/{professional_id}/calendar", response_model=CalendarResponse)
def slot_calendar(
    professional_id: str,
    service_id: str,
    start_date: str | None = None,
    days: int = 7,
    session: Session = Depends(get_session),
):
    start = parse_date(start_date) if start_date else date.today()
    by_day = call_with_retry(
        compute_slots_for_range,
        SqlAdapter(session),
        professional_id,
        start,
        days,
        service_id,
        step_minutes=config.SLOT_STEP_MINUTES,
        conflict_policy=config.CONFLICT_POLICY,
    )
    return CalendarResponse(
        professional_id=professional_id,
        service_id=service_id,
        days={d: [SlotOut(time=s.time, available=s.available) for s in slots] for d, slots in by_day.items()},
    )


@app.get("/api/professionals/{professional_id}/services", response_model=list[ServiceOut])
def professional_services(professional_id: str, session: Session = Depends(get_session)):
    validate_id(professional_id, "professional_id")
    return list_services(session, professional_id)


@app.get("/api/service-categories", response_model=list[ServiceCategoryOut])
def service_categories(session: Session = Depends(get_session)):
    return list_categories(session)


@app.post("/api/service-categories", response_model=ServiceCategoryOut)
def add_service_category(
    req: CreateCategoryRequest,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    return create_category(session, actor, req.name, req.color)


@app.post("/api/services", response_model=ServiceOut)
def add_service(
    req: CreateServiceRequest,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    return create_service(
        session, actor, req.name, req.duration, req.price, req.description, category_id=req.category_id
    )


@app.patch("/api/services/{service_id}", response_model=ServiceOut)
def edit_service(
    service_id: str,
    req: UpdateServiceRequest,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    return update_service(session, actor, service_id, **req.model_dump(exclude_unset=True))


@app.get("/api/availability", response_model=list[AvailabilityOut])
def my_availability(actor: Actor = Depends(current_actor), session: Session = Depends(get_session)):
    return rules.list_rules(session, actor.id)


@app.post("/api/availability", response_model=AvailabilityOut)
def add_availability(
    req: CreateAvailabilityRequest,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    return rules.add_rule(session, actor, req.day_of_week, req.start_time, req.end_time, req.is_available)


@app.patch("/api/availability/{rule_id}", response_model=AvailabilityOut)
def edit_availability(
    rule_id: str,
    req: UpdateAvailabilityRequest,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    return rules.update_rule(session, actor, rule_id, **req.model_dump(exclude_unset=True))


@app.delete("/api/availability/{rule_id}", status_code=204)
def remove_availability(
    rule_id: str,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    rules.delete_rule(session, actor, rule_id)


@app.get("/api/blocked-slots", response_model=list[BlockedSlotOut])
def blocked_slots(
    start_date: date,
    end_date: date | None = None,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    return rules.list_blocks(session, actor.id, start_date, end_date or start_date)


@app.post("/api/blocked-slots", response_model=BlockedSlotOut)
def add_blocked_slot(
    req: BlockTimeRequest,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    return rules.block_time(session, actor, req.date, req.start_time, req.end_time, req.reason)


@app.delete("/api/blocked-slots/{block_id}", status_code=204)
def remove_blocked_slot(
    block_id: str,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    rules.unblock(session, actor, block_id)


@app.post("/api/appointments", response_model=AppointmentOut)
def book(
    req: BookAppointmentRequest,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
    sink: SqlNotificationSink = Depends(get_sink),
):
    return book_appointment(
        session,
        sink,
        actor,
        professional_id=req.professional_id,
        service_id=req.service_id,
        on_date=req.date,
        start=req.time,
        notes=req.notes,
    )


@app.patch("/api/appointments/{appointment_id}/status", response_model=AppointmentOut)
def update_appointment_status(
    appointment_id: str,
    req: ChangeStatusRequest,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
    sink: SqlNotificationSink = Depends(get_sink),
):
    return change_status(
        session, sink, actor, appointment_id,
        status=req.status,
        confirmation=req.appointment_confirmation,
    )


@app.get("/api/notifications", response_model=NotificationsResponse)
def notifications(
    unread_only: bool = False,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    return NotificationsResponse(
        notifications=[NotificationOut.model_validate(n) for n in list_notifications(session, actor.id, unread_only=unread_only)],
        unread=unread_count(session, actor.id),
    )


@app.post("/api/notifications/{notification_id}/read", response_model=NotificationsResponse)
def read_notification(
    notification_id: str,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    mark_read(session, actor.id, notification_id)
    return NotificationsResponse(
        notifications=[NotificationOut.model_validate(n) for n in list_notifications(session, actor.id)],
        unread=unread_count(session, actor.id),
    )


@app.get("/api/reviews", response_model=list[ReviewOut])
def reviews(actor: Actor = Depends(current_actor), session: Session = Depends(get_session)):
    return list_reviews(session, actor)


@app.post("/api/reviews", response_model=ReviewOut)
def review_appointment(
    req: CreateReviewRequest,
    actor: Actor = Depends(current_actor),
    session: Session = Depends(get_session),
):
    return create_review(session, actor, req.appointment_id, req.rating, req.comment)


@app.get("/api/dashboard", response_model=DashboardResponse)
def dashboard(actor: Actor = Depends(current_actor), session: Session = Depends(get_session)):
    return build_dashboard(session, actor)
