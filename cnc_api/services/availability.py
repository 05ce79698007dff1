"""
Availability resolution and slot administration.

Slot counters (``current_bookings`` / ``is_available``) are only ever written by
single conditional UPDATE statements so that two requests touching the same
day cannot lose each other's writes or overbook a slot.
"""
from flask import current_app
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from ..errors import Forbidden, NotFound, SlotInUse, SlotNotFound, ValidationFailed
from ..extensions import db
from ..models import OCCUPYING_STATUSES, ROLE_PARTNER, Availability, Reservation, TimeSlot, User
from ..utils.time import day_bounds


def get_restaurant(restaurant_id: int) -> User:
    restaurant = db.session.get(User, restaurant_id)
    if restaurant is None or restaurant.role != ROLE_PARTNER:
        raise NotFound("Restaurant not found.")
    return restaurant


def default_slots(template) -> list[TimeSlot]:
    return [
        TimeSlot(
            start_time=item["startTime"],
            end_time=item["endTime"],
            max_capacity=item.get("maxCapacity", 1),
            current_bookings=0,
            is_available=True,
            price=item.get("price", 0),
            description=item.get("description", ""),
        )
        for item in template
    ]


def find_day(restaurant_id: int, day) -> Availability | None:
    start, end = day_bounds(day)
    return db.session.execute(
        select(Availability).where(
            Availability.restaurant_id == restaurant_id,
            Availability.date >= start,
            Availability.date < end,
        )
    ).scalars().first()


def _get_or_create_day(restaurant_id: int, day, make_slots) -> tuple[Availability, bool]:
    record = find_day(restaurant_id, day)
    if record is not None:
        return record, False

    record = Availability(restaurant_id=restaurant_id, date=day_bounds(day)[0], time_slots=make_slots())
    db.session.add(record)
    try:
        db.session.commit()
    except IntegrityError:
        # Another request created the same day first.
        db.session.rollback()
        record = find_day(restaurant_id, day)
        if record is None:
            raise
        return record, False
    return record, True


def _occupied_count(slot_id_col):
    return (
        select(func.count(Reservation.id))
        .where(Reservation.slot_id == slot_id_col, Reservation.status.in_(OCCUPYING_STATUSES))
        .scalar_subquery()
    )


def _recount(*criteria):
    db.session.flush()
    occupied = _occupied_count(TimeSlot.id)
    db.session.execute(
        update(TimeSlot)
        .where(*criteria)
        .values(current_bookings=occupied, is_available=occupied < TimeSlot.max_capacity)
        .execution_options(synchronize_session=False)
    )
    db.session.expire_all()


def recount_slot(slot_id: int):
    """Recomputes one slot's counters from the reservations that occupy it."""
    _recount(TimeSlot.id == slot_id)


def reserve_slot(slot_id: int) -> bool:
    """
    Takes one seat in a slot if, and only if, one is free.

    Compare-and-swap: the capacity check and the increment are one statement,
    so concurrent callers can never push current_bookings past max_capacity.
    """
    db.session.flush()
    result = db.session.execute(
        update(TimeSlot)
        .where(
            TimeSlot.id == slot_id,
            TimeSlot.current_bookings < TimeSlot.max_capacity,
            TimeSlot.is_closed.is_(False),
        )
        .values(
            current_bookings=TimeSlot.current_bookings + 1,
            is_available=(TimeSlot.current_bookings + 1) < TimeSlot.max_capacity,
        )
        .execution_options(synchronize_session=False)
    )
    db.session.expire_all()
    return result.rowcount == 1


def occupied_reservations(slot_id: int) -> int:
    return db.session.execute(
        select(func.count(Reservation.id)).where(
            Reservation.slot_id == slot_id, Reservation.status.in_(OCCUPYING_STATUSES)
        )
    ).scalar_one()


def _set_capacity(slot: TimeSlot, max_capacity: int):
    db.session.flush()
    result = db.session.execute(
        update(TimeSlot)
        .where(TimeSlot.id == slot.id, TimeSlot.current_bookings <= max_capacity)
        .values(max_capacity=max_capacity, is_available=TimeSlot.current_bookings < max_capacity)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise ValidationFailed("Maximum capacity cannot be lower than current bookings.")


def resolve_day(restaurant_id: int, day, template=None) -> Availability:
    """
    Returns the day's availability record, creating it from the default template
    on first access and re-deriving every slot counter from live reservations.
    """
    get_restaurant(restaurant_id)
    if template is None:
        template = current_app.config["DEFAULT_TIME_SLOTS"]

    record, created = _get_or_create_day(restaurant_id, day, lambda: default_slots(template))
    if created:
        current_app.logger.info(f"Created default availability for restaurant {restaurant_id} on {day}")

    _recount(TimeSlot.availability_id == record.id)
    db.session.commit()

    overbooked = [s for s in record.time_slots if s.current_bookings > s.max_capacity]
    for s in overbooked:
        current_app.logger.warning(
            f"Slot {s.id} ({s.start_time}-{s.end_time}) for restaurant {restaurant_id} on {day} "
            f"has {s.current_bookings} bookings for capacity {s.max_capacity}"
        )
    return record


def replace_day(restaurant_id: int, day, slots) -> Availability:
    """Bulk replace of a day's slots. Slots are matched by (start, end) and keep their ids."""
    record, _ = _get_or_create_day(restaurant_id, day, list)

    existing = {(s.start_time, s.end_time): s for s in record.time_slots}
    incoming = {(s.start_time, s.end_time) for s in slots}

    removed = [s for key, s in existing.items() if key not in incoming]
    for slot in removed:
        if occupied_reservations(slot.id):
            raise SlotInUse(f"Time slot {slot.start_time}-{slot.end_time} has active reservations.")

    for slot in removed:
        _detach_reservations(slot.id)
        record.time_slots.remove(slot)

    for item in slots:
        slot = existing.get((item.start_time, item.end_time))
        if slot is None:
            record.time_slots.append(
                TimeSlot(
                    start_time=item.start_time,
                    end_time=item.end_time,
                    max_capacity=item.max_capacity,
                    current_bookings=0,
                    is_available=True,
                    is_closed=not item.is_available,
                    price=item.price,
                    description=item.description,
                )
            )
            continue
        if slot.max_capacity != item.max_capacity:
            _set_capacity(slot, item.max_capacity)
        slot.is_closed = not item.is_available
        slot.price = item.price
        slot.description = item.description

    _recount(TimeSlot.availability_id == record.id)
    db.session.commit()
    return record


def add_custom_slot(restaurant_id: int, day, item) -> Availability:
    record, _ = _get_or_create_day(restaurant_id, day, list)
    if any(s.start_time == item.start_time and s.end_time == item.end_time for s in record.time_slots):
        raise ValidationFailed("Time slot already exists.")

    record.time_slots.append(
        TimeSlot(
            start_time=item.start_time,
            end_time=item.end_time,
            max_capacity=item.max_capacity,
            current_bookings=0,
            is_available=True,
            is_closed=not item.is_available,
            price=item.price,
            description=item.description,
        )
    )
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ValidationFailed("Time slot already exists.")
    return record


def _owned_slot(slot_id: int, actor) -> TimeSlot:
    slot = db.session.get(TimeSlot, slot_id)
    if slot is None:
        raise SlotNotFound()
    if not actor.can_manage(slot.availability.restaurant_id):
        raise Forbidden("You do not manage this restaurant.")
    return slot


def patch_slot(availability_id: int, slot_id: int, changes, actor) -> Availability:
    record = db.session.get(Availability, availability_id)
    if record is None:
        raise NotFound("Availability not found.")
    if not actor.can_manage(record.restaurant_id):
        raise Forbidden("You do not manage this restaurant.")

    slot = next((s for s in record.time_slots if s.id == slot_id), None)
    if slot is None:
        raise SlotNotFound()

    if changes.max_capacity is not None:
        _set_capacity(slot, changes.max_capacity)
    if changes.is_available is not None:
        slot.is_closed = not changes.is_available
    if changes.price is not None:
        slot.price = changes.price
    if changes.description is not None:
        slot.description = changes.description

    db.session.commit()
    return record


def update_slot(slot_id: int, item, actor) -> Availability:
    slot = _owned_slot(slot_id, actor)
    record = slot.availability

    if (item.start_time, item.end_time) != (slot.start_time, slot.end_time):
        if occupied_reservations(slot.id):
            raise SlotInUse("Cannot change the time of a slot with active reservations.")
        if any(
            s.id != slot.id and s.start_time == item.start_time and s.end_time == item.end_time
            for s in record.time_slots
        ):
            raise ValidationFailed("Time slot already exists.")
        slot.start_time = item.start_time
        slot.end_time = item.end_time

    if slot.max_capacity != item.max_capacity:
        _set_capacity(slot, item.max_capacity)
    slot.is_closed = not item.is_available
    slot.price = item.price
    slot.description = item.description

    recount_slot(slot.id)
    db.session.commit()
    return record


def _detach_reservations(slot_id: int):
    db.session.execute(
        update(Reservation)
        .where(Reservation.slot_id == slot_id)
        .values(slot_id=None)
        .execution_options(synchronize_session=False)
    )


def delete_slot(slot_id: int, actor):
    slot = _owned_slot(slot_id, actor)
    if occupied_reservations(slot.id):
        raise SlotInUse("Cannot delete a slot with active reservations.")

    _detach_reservations(slot.id)
    db.session.delete(slot)
    db.session.commit()
    current_app.logger.info(f"Deleted time slot {slot_id}")
