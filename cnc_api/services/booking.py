from flask import current_app
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from ..errors import NoAvailabilitySet, NotFound, SlotNotFound, SlotUnavailable
from ..extensions import db
from ..models import ROLE_PARTNER, STATUS_PENDING, Reservation, User
from .availability import find_day, reserve_slot
from .notifications import notify_booking_created


def resolve_restaurant(ref) -> User:
    """
    Restaurants are referenced by id; older clients send the restaurant name.
    A string is looked up by name first, so names made of digits still resolve.
    """
    if isinstance(ref, int):
        restaurant = db.session.get(User, ref)
    else:
        name = str(ref).strip()
        restaurant = db.session.execute(
            select(User).where(User.restaurant_name == name, User.role == ROLE_PARTNER)
        ).scalars().first()
        if restaurant is None and name.isdigit():
            restaurant = db.session.get(User, int(name))

    if restaurant is None or restaurant.role != ROLE_PARTNER:
        raise NotFound("Selected restaurant not found.")
    return restaurant


def match_slot(record, window):
    if window.id is not None:
        slot = next((s for s in record.time_slots if s.id == window.id), None)
        if slot is not None and (slot.start_time, slot.end_time) != (window.start_time, window.end_time):
            return None
        return slot
    return next(
        (s for s in record.time_slots if s.start_time == window.start_time and s.end_time == window.end_time),
        None,
    )


def create_reservation(data) -> Reservation:
    restaurant = resolve_restaurant(data.restaurant)

    record = find_day(restaurant.id, data.date)
    if record is None:
        raise NoAvailabilitySet()

    slot = match_slot(record, data.time_slot)
    if slot is None:
        raise SlotNotFound("Selected time slot not found.")
    if not slot.bookable:
        raise SlotUnavailable()

    if not reserve_slot(slot.id):
        db.session.rollback()
        current_app.logger.info(f"Slot {slot.id} for restaurant {restaurant.id} was taken concurrently")
        raise SlotUnavailable()

    reservation = Reservation(
        name=data.name,
        email=data.email.lower(),
        contact=data.contact or "",
        restaurant_id=restaurant.id,
        slot_id=slot.id,
        date=record.date,
        start_time=slot.start_time,
        end_time=slot.end_time,
        number_of_guests=data.guest_count,
        instructions=data.instructions or "",
        status=STATUS_PENDING,
        subscribe_to_promotions=data.subscribe_to_promotions,
    )
    db.session.add(reservation)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise

    current_app.logger.info(
        f"Reservation {reservation.id} created for restaurant {restaurant.id} "
        f"on {reservation.date.date()} {reservation.time_label}"
    )
    notify_booking_created(reservation, restaurant)
    return reservation
