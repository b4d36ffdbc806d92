"""
Admin console tests.

Validates:
- Admin routes reject anonymous users (401) and players (403)
- Dashboard counters and revenue
- Booking listing filters and status transitions (including un-cancel)
- User role changes and deletion
- Court create/update/delete guards
"""

from datetime import date, timedelta
from decimal import Decimal

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from app.models.booking import Booking
from app.models.court import Court
from app.models.slot_claim import SlotClaim
from app.models.time_slot import TimeSlot
from app.models.user import User
from tests.conftest import login, make_user

TOMORROW = date.today() + timedelta(days=1)


def _slot_ids(session: Session):
    return [s.id for s in session.exec(select(TimeSlot).order_by(TimeSlot.start_time)).all()]


def _book(client: TestClient, court_id: int, slot_ids, booking_date: date = TOMORROW):
    response = client.post(
        "/api/bookings",
        json={"court_id": court_id, "booking_date": booking_date.isoformat(), "time_slot_ids": slot_ids},
    )
    assert response.status_code == 201, response.text
    return response.json()


# ============================================================================
# Access control
# ============================================================================


def test_admin_routes_require_login(client: TestClient, session: Session):
    assert client.get("/api/admin/stats").status_code == 401
    assert client.get("/api/admin/bookings").status_code == 401
    assert client.get("/api/admin/users").status_code == 401


def test_admin_routes_reject_players(player_client: TestClient, session: Session):
    response = player_client.get("/api/admin/stats")
    assert response.status_code == 403
    assert response.json()["detail"] == "Admin access required"
    assert player_client.post("/api/admin/courts", json={"name": "X", "price_per_hour": "10"}).status_code == 403


def test_demoted_admin_loses_access_immediately(admin_client: TestClient, session: Session, admin_user):
    assert admin_client.get("/api/admin/stats").status_code == 200

    admin_user.role = "player"
    session.add(admin_user)
    session.commit()

    assert admin_client.get("/api/admin/stats").status_code == 403


# ============================================================================
# Dashboard
# ============================================================================


def test_stats(admin_client: TestClient, player_client: TestClient, session: Session, courts):
    slots = _slot_ids(session)
    today = date.today()
    paid = _book(player_client, courts[0].id, [slots[0], slots[1]], booking_date=today)
    pending = _book(player_client, courts[1].id, [slots[0]])
    cancelled = _book(player_client, courts[1].id, [slots[1]])

    admin_client.put(f"/api/admin/bookings/{paid['id']}/status", json={"status": "paid"})
    admin_client.put(f"/api/admin/bookings/{cancelled['id']}/status", json={"status": "cancelled"})

    response = admin_client.get("/api/admin/stats")
    assert response.status_code == 200
    stats = response.json()

    assert stats["total_bookings"] == 3
    assert stats["pending_bookings"] == 1
    assert stats["paid_bookings"] == 1
    assert stats["confirmed_bookings"] == 0
    assert stats["completed_bookings"] == 0
    assert stats["total_users"] == 2
    assert stats["active_courts"] == 2
    assert Decimal(stats["total_revenue"]) == Decimal("50.00")
    assert stats["today_bookings"] == 1
    assert Decimal(stats["today_earnings"]) == Decimal("50.00")
    assert pending["status"] == "pending"


# ============================================================================
# Bookings
# ============================================================================


def test_list_bookings_with_filters(admin_client: TestClient, player_client: TestClient, session: Session, courts):
    slots = _slot_ids(session)
    later = TOMORROW + timedelta(days=3)
    first = _book(player_client, courts[0].id, [slots[0]])
    _book(player_client, courts[0].id, [slots[0]], booking_date=later)
    player_client.put(f"/api/bookings/{first['id']}/cancel")

    response = admin_client.get("/api/admin/bookings")
    assert response.status_code == 200
    bookings = response.json()
    assert len(bookings) == 2
    assert bookings[0]["booking_date"] == later.isoformat()
    assert bookings[0]["username"] == "alice"
    assert bookings[0]["email"] == "alice@example.com"
    assert bookings[0]["phone"] == "555-0100"

    assert len(admin_client.get("/api/admin/bookings", params={"status": "all"}).json()) == 2

    cancelled = admin_client.get("/api/admin/bookings", params={"status": "cancelled"}).json()
    assert [b["id"] for b in cancelled] == [first["id"]]

    on_day = admin_client.get("/api/admin/bookings", params={"date": later.isoformat()}).json()
    assert len(on_day) == 1

    assert admin_client.get("/api/admin/bookings", params={"status": "bogus"}).status_code == 400


def test_update_booking_status(admin_client: TestClient, player_client: TestClient, session: Session, courts):
    booking = _book(player_client, courts[0].id, _slot_ids(session)[:1])

    response = admin_client.put(f"/api/admin/bookings/{booking['id']}/status", json={"status": "confirmed"})
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    assert response.json()["username"] == "alice"

    response = admin_client.put(f"/api/admin/bookings/{booking['id']}/status", json={"status": "refunded"})
    assert response.status_code == 400

    response = admin_client.put("/api/admin/bookings/9999/status", json={"status": "confirmed"})
    assert response.status_code == 404


def test_admin_cancel_then_restore_conflict(
    admin_client: TestClient, player_client: TestClient, session: Session, courts
):
    slots = _slot_ids(session)
    booking = _book(player_client, courts[0].id, [slots[0], slots[1]])

    response = admin_client.put(f"/api/admin/bookings/{booking['id']}/status", json={"status": "cancelled"})
    assert response.status_code == 200
    assert session.exec(select(SlotClaim)).all() == []

    # Someone else takes one of the freed slots
    make_user(session, "bob")
    with TestClient(admin_client.app) as bob_client:
        login(bob_client, "bob")
        _book(bob_client, courts[0].id, [slots[1]])

    response = admin_client.put(f"/api/admin/bookings/{booking['id']}/status", json={"status": "confirmed"})
    assert response.status_code == 409
    assert response.json()["detail"]["taken_slot_ids"] == [slots[1]]


# ============================================================================
# Users
# ============================================================================


def test_list_users_with_booking_counts(admin_client: TestClient, player_client: TestClient, session: Session, courts):
    slots = _slot_ids(session)
    _book(player_client, courts[0].id, [slots[0]])
    _book(player_client, courts[0].id, [slots[1]])

    response = admin_client.get("/api/admin/users")
    assert response.status_code == 200
    counts = {u["username"]: u["booking_count"] for u in response.json()}
    assert counts == {"alice": 2, "boss": 0}


def test_change_role(admin_client: TestClient, session: Session, player, admin_user):
    response = admin_client.put(f"/api/admin/users/{player.id}/role", json={"role": "admin"})
    assert response.status_code == 200
    assert response.json()["role"] == "admin"

    assert admin_client.put(f"/api/admin/users/{player.id}/role", json={"role": "owner"}).status_code == 422
    assert admin_client.put("/api/admin/users/9999/role", json={"role": "admin"}).status_code == 404

    response = admin_client.put(f"/api/admin/users/{admin_user.id}/role", json={"role": "player"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot change your own role"


def test_delete_user_removes_bookings_and_frees_slots(
    admin_client: TestClient, player_client: TestClient, session: Session, courts, player, admin_user
):
    slots = _slot_ids(session)
    _book(player_client, courts[0].id, [slots[0], slots[1]])
    player_id = player.id

    response = admin_client.delete(f"/api/admin/users/{player_id}")
    assert response.status_code == 204

    session.expire_all()
    assert session.get(User, player_id) is None
    assert session.exec(select(Booking)).all() == []
    assert session.exec(select(SlotClaim)).all() == []

    assert admin_client.delete(f"/api/admin/users/{admin_user.id}").status_code == 400
    assert admin_client.delete("/api/admin/users/9999").status_code == 404


# ============================================================================
# Courts
# ============================================================================


def test_court_crud(admin_client: TestClient, session: Session):
    response = admin_client.post(
        "/api/admin/courts",
        json={"name": "  Court D  ", "description": "Indoor", "price_per_hour": "35.50"},
    )
    assert response.status_code == 201, response.text
    court = response.json()
    assert court["name"] == "Court D"
    assert court["is_available"] is True
    assert Decimal(court["price_per_hour"]) == Decimal("35.50")

    duplicate = admin_client.post("/api/admin/courts", json={"name": "Court D", "price_per_hour": "10"})
    assert duplicate.status_code == 409

    response = admin_client.put(f"/api/admin/courts/{court['id']}", json={"is_available": False})
    assert response.status_code == 200
    assert response.json()["is_available"] is False
    assert response.json()["name"] == "Court D"

    # Closed courts still show up for admins
    names = [c["name"] for c in admin_client.get("/api/admin/courts").json()]
    assert "Court D" in names

    assert admin_client.delete(f"/api/admin/courts/{court['id']}").status_code == 204
    assert admin_client.get(f"/api/courts/{court['id']}").status_code == 404


def test_court_create_validation(admin_client: TestClient, session: Session):
    assert admin_client.post("/api/admin/courts", json={"name": "", "price_per_hour": "10"}).status_code == 422
    assert admin_client.post("/api/admin/courts", json={"name": "X", "price_per_hour": "-1"}).status_code == 422
    assert admin_client.post("/api/admin/courts", json={"name": "X"}).status_code == 422


def test_court_update_rejects_duplicate_name(admin_client: TestClient, session: Session, courts):
    response = admin_client.put(f"/api/admin/courts/{courts[0].id}", json={"name": "Court B"})
    assert response.status_code == 409

    response = admin_client.put(f"/api/admin/courts/{courts[0].id}", json={"price_per_hour": None})
    assert response.status_code == 422

    assert admin_client.put("/api/admin/courts/9999", json={"name": "Z"}).status_code == 404


def test_delete_booked_court_is_refused(admin_client: TestClient, player_client: TestClient, session: Session, courts):
    _book(player_client, courts[0].id, _slot_ids(session)[:1])

    response = admin_client.delete(f"/api/admin/courts/{courts[0].id}")
    assert response.status_code == 409
    assert "1 booking(s)" in response.json()["detail"]
    assert admin_client.delete("/api/admin/courts/9999").status_code == 404


def test_court_rename_race_returns_409(admin_client: TestClient, session: Session, courts, monkeypatch):
    """A rename that passes the name check but collides at commit is still a 409."""
    from app.routes import admin as admin_routes

    monkeypatch.setattr(admin_routes, "_court_name_taken", lambda *args, **kwargs: False)

    response = admin_client.put(f"/api/admin/courts/{courts[0].id}", json={"name": "Court B"})
    assert response.status_code == 409
    assert response.json()["detail"] == "Court with name 'Court B' already exists"

    session.expire_all()
    assert session.get(Court, courts[0].id).name == "Court A"
