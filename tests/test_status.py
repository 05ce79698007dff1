from datetime import datetime, timedelta, timezone

import jwt

from cnc_api.extensions import db, mail
from cnc_api.models import Reservation

from helpers import assert_slot_invariant, book, future_day, open_day, slot_for


def _booked(client, users, day, start="09:00", end="10:00", **overrides):
    open_day(client, users.partner_id, day)
    r = book(client, users.partner_id, day, start, end, **overrides)
    assert r.status_code == 201
    return r.get_json()["reservationId"]


def _set_status(client, headers, reservation_id, status):
    return client.put(f"/api/reservations/{reservation_id}/status", headers=headers, json={"status": status})


def test_confirm_keeps_slot_occupied(app, client, users):
    day = future_day()
    reservation_id = _booked(client, users, day)

    r = _set_status(client, users.partner, reservation_id, "confirmed")
    assert r.status_code == 200
    assert r.get_json()["message"] == "Reservation confirmed"
    assert r.get_json()["reservation"]["status"] == "confirmed"

    slots = open_day(client, users.partner_id, day)
    slot = next(s for s in slots if s["startTime"] == "09:00")
    assert slot["currentBookings"] == 1
    assert slot["isAvailable"] is False
    assert_slot_invariant(slots)

    with app.app_context():
        assert db.session.get(Reservation, reservation_id).status == "confirmed"


def test_decline_frees_slot_for_new_booking(client, users):
    day = future_day()
    reservation_id = _booked(client, users, day, "14:00", "15:00")

    r = _set_status(client, users.partner, reservation_id, "declined")
    assert r.status_code == 200
    assert r.get_json()["reservation"]["status"] == "declined"

    slot = slot_for(client, users.partner_id, day, "14:00")
    assert slot["currentBookings"] == 0
    assert slot["isAvailable"] is True

    again = book(client, users.partner_id, day, "14:00", "15:00", email="next@example.com")
    assert again.status_code == 201


def test_book_then_decline_round_trip(client, users):
    day = future_day()
    reservation_id = _booked(client, users, day, "16:00", "17:00")
    assert slot_for(client, users.partner_id, day, "16:00")["isAvailable"] is False

    _set_status(client, users.partner, reservation_id, "declined")
    assert slot_for(client, users.partner_id, day, "16:00")["isAvailable"] is True


def test_deleting_confirmed_reservation_frees_slot(app, client, users):
    day = future_day()
    reservation_id = _booked(client, users, day, "19:00", "20:00")
    assert _set_status(client, users.partner, reservation_id, "confirmed").status_code == 200

    r = client.delete(f"/api/reservations/{reservation_id}", headers=users.partner)
    assert r.status_code == 200
    assert r.get_json()["message"] == "Reservation deleted successfully"

    slots = open_day(client, users.partner_id, day)
    slot = next(s for s in slots if s["startTime"] == "19:00")
    assert slot["currentBookings"] == 0
    assert slot["isAvailable"] is True
    assert_slot_invariant(slots)

    with app.app_context():
        assert db.session.get(Reservation, reservation_id) is None

    assert book(client, users.partner_id, day, "19:00", "20:00", email="next@example.com").status_code == 201


def test_deleting_pending_reservation_frees_slot(client, users):
    day = future_day()
    reservation_id = _booked(client, users, day, "12:00", "13:00")

    assert client.delete(f"/api/reservations/{reservation_id}", headers=users.admin).status_code == 200
    assert slot_for(client, users.partner_id, day, "12:00")["currentBookings"] == 0


def test_only_pending_reservations_transition(client, users):
    day = future_day()
    reservation_id = _booked(client, users, day)
    assert _set_status(client, users.partner, reservation_id, "confirmed").status_code == 200

    for status in ("declined", "pending", "confirmed", "completed"):
        r = _set_status(client, users.partner, reservation_id, status)
        assert r.status_code == 409, status
        assert r.get_json()["code"] == "INVALID_TRANSITION"


def test_pending_to_completed_is_rejected(client, users):
    reservation_id = _booked(client, users, future_day())
    r = _set_status(client, users.partner, reservation_id, "completed")
    assert r.status_code == 409


def test_unknown_status_is_422(client, users):
    reservation_id = _booked(client, users, future_day())
    r = _set_status(client, users.partner, reservation_id, "cancelled")
    assert r.status_code == 422
    assert r.get_json()["code"] == "VALIDATION_ERROR"


def test_other_partner_cannot_touch_reservation(client, users):
    day = future_day()
    reservation_id = _booked(client, users, day)

    assert _set_status(client, users.rival, reservation_id, "declined").status_code == 403
    assert client.delete(f"/api/reservations/{reservation_id}", headers=users.rival).status_code == 403
    assert slot_for(client, users.partner_id, day, "09:00")["isAvailable"] is False


def test_admin_can_change_any_reservation(client, users):
    reservation_id = _booked(client, users, future_day())
    r = _set_status(client, users.admin, reservation_id, "declined")
    assert r.status_code == 200


def test_missing_reservation_is_404(client, users):
    assert _set_status(client, users.partner, 424242, "confirmed").status_code == 404
    assert client.delete("/api/reservations/424242", headers=users.partner).status_code == 404


def test_status_change_requires_token(client, users):
    reservation_id = _booked(client, users, future_day())

    r = _set_status(client, {}, reservation_id, "confirmed")
    assert r.status_code == 401
    assert r.get_json()["code"] == "UNAUTHORIZED"

    r = _set_status(client, {"Authorization": "Bearer garbage"}, reservation_id, "confirmed")
    assert r.status_code == 401

    expired = jwt.encode(
        {"id": users.partner_id, "role": "partner", "approved": True,
         "exp": datetime.now(timezone.utc) - timedelta(minutes=5)},
        "test-secret",
        algorithm="HS256",
    )
    r = _set_status(client, {"Authorization": f"Bearer {expired}"}, reservation_id, "confirmed")
    assert r.status_code == 401
    assert r.get_json()["message"] == "Token expired."


def test_status_change_emails_customer(client, users):
    reservation_id = _booked(client, users, future_day(), email="guest@example.com")

    with mail.record_messages() as outbox:
        _set_status(client, users.partner, reservation_id, "confirmed")

    assert len(outbox) == 1
    assert outbox[0].recipients == ["guest@example.com"]
    assert "confirmed" in outbox[0].body


def test_status_change_survives_mail_failure(client, users, monkeypatch):
    reservation_id = _booked(client, users, future_day())

    def boom(message):
        raise OSError("smtp down")

    monkeypatch.setattr(mail, "send", boom)
    assert _set_status(client, users.partner, reservation_id, "declined").status_code == 200
    assert client.delete(f"/api/reservations/{reservation_id}", headers=users.partner).status_code == 200


def test_delete_emails_customer(client, users):
    reservation_id = _booked(client, users, future_day(), email="guest@example.com")

    with mail.record_messages() as outbox:
        r = client.delete(f"/api/reservations/{reservation_id}", headers=users.partner)
    assert r.status_code == 200

    assert len(outbox) == 1
    assert outbox[0].subject == "Reservation Cancelled - CNC World Tour"
    assert outbox[0].recipients == ["guest@example.com"]
    assert "Trattoria Uno" in outbox[0].body


def test_delete_survives_mail_failure(client, users, monkeypatch):
    day = future_day()
    reservation_id = _booked(client, users, day, "20:00", "21:00")

    def boom(message):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr(mail, "send", boom)
    assert client.delete(f"/api/reservations/{reservation_id}", headers=users.partner).status_code == 200

    slot = slot_for(client, users.partner_id, day, "20:00")
    assert slot["currentBookings"] == 0
    assert slot["bookable"] is True


def test_partner_lists_own_reservations(client, users):
    day = future_day()
    _booked(client, users, day, "09:00", "10:00", name="Ann")
    _booked(client, users, day, "11:00", "12:00", name="Ben")
    open_day(client, users.rival_id, day)
    assert book(client, users.rival_id, day, name="Cleo").status_code == 201

    r = client.get("/api/reservations/partner", headers=users.partner)
    assert r.status_code == 200
    rows = r.get_json()
    assert [row["customerName"] for row in rows] == ["Ann", "Ben"]
    assert rows[0]["time"] == "09:00 - 10:00"
    assert rows[0]["date"] == day
    assert rows[0]["status"] == "pending"
    assert rows[0]["numberOfGuests"] == 2

    assert client.get("/api/reservations/partner", headers=users.admin).status_code == 403
    assert client.get("/api/reservations/partner").status_code == 401


def test_admin_lists_day(client, users):
    day = future_day()
    _booked(client, users, day, "09:00", "10:00")
    _booked(client, users, day, "10:00", "11:00")
    open_day(client, users.rival_id, day)
    assert book(client, users.rival_id, day, "09:00", "10:00").status_code == 201

    r = client.get("/api/reservations", query_string={"date": day, "page": 1, "page_size": 2}, headers=users.admin)
    assert r.status_code == 200
    body = r.get_json()
    assert body["total"] == 3
    assert len(body["reservations"]) == 2
    assert {row["restaurant"]["name"] for row in body["reservations"]} <= {"Trattoria Uno", "Bistro Due"}

    assert client.get("/api/reservations", query_string={"date": day}, headers=users.partner).status_code == 403
    assert client.get("/api/reservations", headers=users.admin).status_code == 400
    assert client.get("/api/reservations", query_string={"date": "soon"}, headers=users.admin).status_code == 422
