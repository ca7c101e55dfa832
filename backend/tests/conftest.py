import os
import sys
import tempfile
from datetime import date, time, timedelta
from pathlib import Path

_DB_DIR = tempfile.mkdtemp(prefix="booking-tests-")
os.environ["BOOKING_DATABASE_URL"] = f"sqlite:///{Path(_DB_DIR) / 'test.db'}"
os.environ["BOOKING_SEED_DEMO_DATA"] = "false"
os.environ["BOOKING_RETRY_ATTEMPTS"] = "2"
os.environ["BOOKING_RETRY_MAX_DELAY"] = "0"

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest
from fastapi.testclient import TestClient
from sqlmodel import SQLModel, Session

from booking.db import engine
from booking.main import app
from booking.models import Profile, ProfessionalAvailability, Service, UserRole
from booking.services.actors import Actor

# bookings are refused in the past, so the salon week is always ahead of today
_today = date.today()
MONDAY = _today + timedelta(days=7 - _today.weekday())
TUESDAY = MONDAY + timedelta(days=1)
WEDNESDAY = MONDAY + timedelta(days=2)
SUNDAY = MONDAY - timedelta(days=1)


@pytest.fixture
def session():
    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)
    with Session(engine) as s:
        yield s


@pytest.fixture
def client(session):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def salon(session):
    """A professional open Monday 09:00-12:00 with 60 and 90 minute services, and one client."""
    session.add(Profile(id="pro_1", user_id="u_pro_1", full_name="Carla Mendes", user_role=UserRole.professional))
    session.add(Profile(id="pro_2", user_id="u_pro_2", full_name="Diego Alves", user_role=UserRole.professional))
    session.add(Profile(id="cli_1", user_id="u_cli_1", full_name="Eva Rocha", user_role=UserRole.client))
    session.add(Profile(id="cli_2", user_id="u_cli_2", full_name="Felipe Costa", user_role=UserRole.client))
    session.add(Profile(id="adm_1", user_id="u_adm_1", full_name="Gabi Admin", user_role=UserRole.admin))
    session.commit()

    session.add(Service(id="svc_cut", professional_id="pro_1", name="Cut", duration=60, price=50.0))
    session.add(Service(id="svc_color", professional_id="pro_1", name="Color", duration=90, price=120.0))
    session.add(Service(id="svc_old", professional_id="pro_1", name="Old", duration=30, price=10.0, is_active=False))
    session.add(Service(id="svc_other", professional_id="pro_2", name="Massage", duration=60, price=90.0))
    session.add(ProfessionalAvailability(
        id="avl_mon", professional_id="pro_1", day_of_week=1, start_time=time(9, 0), end_time=time(12, 0),
    ))
    session.add(ProfessionalAvailability(
        id="avl_tue", professional_id="pro_1", day_of_week=2, start_time=time(9, 0), end_time=time(12, 0),
        is_available=False,
    ))
    session.commit()

    return {
        "professional": Actor(id="pro_1", role=UserRole.professional, full_name="Carla Mendes"),
        "other_professional": Actor(id="pro_2", role=UserRole.professional, full_name="Diego Alves"),
        "client": Actor(id="cli_1", role=UserRole.client, full_name="Eva Rocha"),
        "other_client": Actor(id="cli_2", role=UserRole.client, full_name="Felipe Costa"),
        "admin": Actor(id="adm_1", role=UserRole.admin, full_name="Gabi Admin"),
    }
