from booking.main import app
from booking.models import Service
from booking.services import adapter_sql
from booking.services.errors import DataAccessFailure

from conftest import MONDAY, SUNDAY, TUESDAY, WEDNESDAY

PRO = {"X-Profile-Id": "pro_1"}
CLIENT = {"X-Profile-Id": "cli_1"}


def test_slots_endpoint_returns_ordered_slots(client, salon):
    response = client.get(
        "/api/professionals/pro_1/slots",
        params={"date": MONDAY.isoformat(), "service_id": "svc_cut"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["date"] == MONDAY.isoformat()
    assert [s["time"] for s in data["slots"]] == ["09:00", "09:30", "10:00", "10:30", "11:00"]
    assert all(s["available"] for s in data["slots"])


def test_slots_endpoint_empty_when_nothing_configured(client, salon):
    response = client.get(
        "/api/professionals/pro_1/slots",
        params={"date": TUESDAY.isoformat(), "service_id": "svc_cut"},
    )

    assert response.status_code == 200
    assert response.json()["slots"] == []


def test_slots_endpoint_rejects_bad_input(client, salon):
    response = client.get(
        "/api/professionals/pro_1/slots",
        params={"date": "not-a-date", "service_id": "svc_cut"},
    )
    assert response.status_code == 422

    response = client.get(
        "/api/professionals/pro%201/slots",
        params={"date": MONDAY.isoformat(), "service_id": "svc_cut"},
    )
    assert response.status_code == 422


def test_store_failure_is_a_503_not_an_empty_list(client, salon, monkeypatch):
    calls = []

    def unreachable(self, professional_id, day_of_week):
        calls.append(day_of_week)
        raise DataAccessFailure("Could not load weekly availability")

    monkeypatch.setattr(adapter_sql.SqlAdapter, "get_weekly_availability", unreachable)

    response = client.get(
        "/api/professionals/pro_1/slots",
        params={"date": MONDAY.isoformat(), "service_id": "svc_cut"},
    )

    assert response.status_code == 503
    assert response.json()["retryable"] is True
    # BOOKING_RETRY_ATTEMPTS=2 in conftest
    assert len(calls) == 2


def test_malformed_service_is_a_503_without_retries(client, session, salon, monkeypatch):
    session.add(Service(id="svc_broken", professional_id="pro_1", name="Broken", duration=0, price=10.0))
    session.commit()
    calls = []
    load_service = adapter_sql.SqlAdapter.get_service

    def counting(self, service_id):
        calls.append(service_id)
        return load_service(self, service_id)

    monkeypatch.setattr(adapter_sql.SqlAdapter, "get_service", counting)

    response = client.get(
        "/api/professionals/pro_1/slots",
        params={"date": MONDAY.isoformat(), "service_id": "svc_broken"},
    )

    assert response.status_code == 503
    assert calls == ["svc_broken"]


def test_calendar_endpoint(client, salon):
    response = client.get(
        "/api/professionals/pro_1/calendar",
        params={"start_date": SUNDAY.isoformat(), "days": 7, "service_id": "svc_cut"},
    )

    assert response.status_code == 200
    assert list(response.json()["days"]) == [MONDAY.isoformat()]


def test_actor_header_is_required(client, salon):
    assert client.get("/api/dashboard").status_code == 401
    assert client.get("/api/dashboard", headers={"X-Profile-Id": "ghost"}).status_code == 401


def test_booking_flow_over_http(client, salon):
    response = client.post(
        "/api/appointments",
        headers=CLIENT,
        json={"professional_id": "pro_1", "service_id": "svc_cut", "date": MONDAY.isoformat(), "time": "10:00"},
    )
    assert response.status_code == 200
    appt = response.json()
    assert appt["status"] == "pending"

    again = client.post(
        "/api/appointments",
        headers={"X-Profile-Id": "cli_2"},
        json={"professional_id": "pro_1", "service_id": "svc_cut", "date": MONDAY.isoformat(), "time": "10:00"},
    )
    assert again.status_code == 409

    slots = client.get(
        "/api/professionals/pro_1/slots",
        params={"date": MONDAY.isoformat(), "service_id": "svc_cut"},
    ).json()["slots"]
    assert [s["time"] for s in slots if not s["available"]] == ["10:00"]

    confirmed = client.patch(f"/api/appointments/{appt['id']}/status", headers=PRO, json={"status": "confirmed"})
    assert confirmed.status_code == 200
    assert confirmed.json()["appointment_confirmation"] == "confirmed"

    forbidden = client.patch(f"/api/appointments/{appt['id']}/status", headers=CLIENT, json={"status": "completed"})
    assert forbidden.status_code == 403

    notes = client.get("/api/notifications", headers=CLIENT).json()
    assert notes["unread"] == 2
    read = client.post(f"/api/notifications/{notes['notifications'][0]['id']}/read", headers=CLIENT)
    assert read.json()["unread"] == 1


def test_booking_a_past_date_is_rejected(client, salon):
    response = client.post(
        "/api/appointments",
        headers=CLIENT,
        json={"professional_id": "pro_1", "service_id": "svc_cut", "date": "2020-01-06", "time": "09:00"},
    )

    assert response.status_code == 422
    assert "past" in response.json()["detail"]


def test_professional_manages_availability_over_http(client, salon):
    created = client.post(
        "/api/availability",
        headers=PRO,
        json={"day_of_week": 3, "start_time": "13:00", "end_time": "15:00"},
    )
    assert created.status_code == 200
    rule_id = created.json()["id"]

    assert client.post(
        "/api/availability", headers=CLIENT, json={"day_of_week": 3, "start_time": "13:00", "end_time": "15:00"}
    ).status_code == 403
    assert client.post(
        "/api/availability", headers=PRO, json={"day_of_week": 9, "start_time": "13:00", "end_time": "15:00"}
    ).status_code == 422

    slots = client.get(
        "/api/professionals/pro_1/slots", params={"date": WEDNESDAY.isoformat(), "service_id": "svc_cut"}
    ).json()["slots"]
    assert [s["time"] for s in slots] == ["13:00", "13:30", "14:00"]

    blocked = client.post(
        "/api/blocked-slots",
        headers=PRO,
        json={"date": WEDNESDAY.isoformat(), "start_time": "13:00", "end_time": "14:00", "reason": "lunch"},
    )
    assert blocked.status_code == 200
    listed = client.get("/api/blocked-slots", headers=PRO, params={"start_date": WEDNESDAY.isoformat()}).json()
    assert [b["reason"] for b in listed] == ["lunch"]

    assert client.delete(f"/api/blocked-slots/{blocked.json()['id']}", headers=PRO).status_code == 204
    assert client.delete(f"/api/availability/{rule_id}", headers=PRO).status_code == 204
    assert client.delete(f"/api/availability/{rule_id}", headers=PRO).status_code == 404


def test_services_over_http(client, salon):
    created = client.post("/api/services", headers=PRO, json={"name": "Fringe", "duration": 15, "price": 10})
    assert created.status_code == 200

    listed = client.get("/api/professionals/pro_1/services").json()
    assert "Fringe" in [s["name"] for s in listed]

    patched = client.patch(f"/api/services/{created.json()['id']}", headers=PRO, json={"is_active": False})
    assert patched.json()["is_active"] is False
    assert client.post("/api/services", headers=PRO, json={"name": "Bad", "duration": 0, "price": 10}).status_code == 422


def test_profiles_and_dashboard(client, salon):
    created = client.post(
        "/api/profiles",
        json={"user_id": "u_new", "full_name": "Helena Prado", "email": "helena@example.com", "user_role": "professional"},
    )
    assert created.status_code == 200
    assert created.json()["id"].startswith("pro_")
    assert client.post("/api/profiles", json={"user_id": "u_new", "full_name": "Dup"}).status_code == 409

    dashboard = client.get("/api/dashboard", headers={"X-Profile-Id": created.json()["id"]}).json()
    assert dashboard["role"] == "professional"
    assert dashboard["services"] == []

    admin = client.get("/api/dashboard", headers={"X-Profile-Id": "adm_1"}).json()
    assert "Helena Prado" in [p["full_name"] for p in admin["directory"]["professional"]]


def test_reviews_over_http(client, salon):
    appt = client.post(
        "/api/appointments",
        headers=CLIENT,
        json={"professional_id": "pro_1", "service_id": "svc_cut", "date": MONDAY.isoformat(), "time": "09:00"},
    ).json()
    early = client.post("/api/reviews", headers=CLIENT, json={"appointment_id": appt["id"], "rating": 5})
    assert early.status_code == 422

    client.patch(f"/api/appointments/{appt['id']}/status", headers=PRO, json={"status": "completed"})
    review = client.post("/api/reviews", headers=CLIENT, json={"appointment_id": appt["id"], "rating": 4})
    assert review.status_code == 200

    assert [r["rating"] for r in client.get("/api/reviews", headers=PRO).json()] == [4]


def test_app_title():
    assert app.title == "Booking Platform API"
