from datetime import datetime, timedelta, timezone


def future_day(days: int = 7) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).date().isoformat()


def booking_payload(restaurant, day, start="09:00", end="10:00", **overrides):
    payload = {
        "name": "Casey Diner",
        "email": "casey@example.com",
        "contact": "555-0101",
        "restaurant": restaurant,
        "date": day,
        "timeSlot": {"startTime": start, "endTime": end},
        "guestCount": 2,
        "instructions": "Window seat please",
        "subscribeToPromotions": True,
    }
    payload.update(overrides)
    return payload


def open_day(client, restaurant_id, day):
    r = client.get(f"/api/availability/{restaurant_id}/{day}")
    assert r.status_code == 200
    return r.get_json()["timeSlots"]


def slot_for(client, restaurant_id, day, start):
    return next(s for s in open_day(client, restaurant_id, day) if s["startTime"] == start)


def book(client, restaurant_id, day, start="09:00", end="10:00", **overrides):
    return client.post("/api/reservations", json=booking_payload(restaurant_id, day, start, end, **overrides))


def assert_slot_invariant(slots):
    for s in slots:
        assert s["isAvailable"] == (s["currentBookings"] < s["maxCapacity"]), s
