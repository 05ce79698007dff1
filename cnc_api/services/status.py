from flask import current_app
from sqlalchemy import select

from ..errors import Forbidden, InvalidTransition, NotFound
from ..extensions import db
from ..models import STATUS_CONFIRMED, STATUS_DECLINED, STATUS_PENDING, Reservation
from ..utils.time import api_iso_z
from .availability import recount_slot
from .notifications import notify_cancelled, notify_status_changed

TRANSITIONS = {
    STATUS_PENDING: {STATUS_CONFIRMED, STATUS_DECLINED},
}


def _owned_reservation(reservation_id: int, actor) -> Reservation:
    reservation = db.session.get(Reservation, reservation_id)
    if reservation is None:
        raise NotFound("Reservation not found.")
    if not actor.can_manage(reservation.restaurant_id):
        raise Forbidden("You do not manage this reservation.")
    return reservation


def change_status(reservation_id: int, new_status: str, actor) -> Reservation:
    reservation = _owned_reservation(reservation_id, actor)
    current = reservation.status
    if new_status not in TRANSITIONS.get(current, ()):
        raise InvalidTransition(f"Cannot change reservation from {current} to {new_status}.")

    reservation.status = new_status
    if reservation.slot_id is not None:
        recount_slot(reservation.slot_id)
    db.session.commit()

    current_app.logger.info(f"Reservation {reservation_id} {current} -> {new_status} by user {actor.id}")
    notify_status_changed(reservation, reservation.restaurant)
    return reservation


def delete_reservation(reservation_id: int, actor):
    reservation = _owned_reservation(reservation_id, actor)
    restaurant = reservation.restaurant
    slot_id = reservation.slot_id

    db.session.delete(reservation)
    if slot_id is not None:
        recount_slot(slot_id)
    db.session.commit()

    current_app.logger.info(f"Reservation {reservation_id} deleted by user {actor.id}")
    notify_cancelled(reservation, restaurant)


def format_reservation(r: Reservation) -> dict:
    return {
        "id": r.id,
        "customerName": r.name,
        "customerEmail": r.email,
        "contact": r.contact,
        "restaurantId": r.restaurant_id,
        "slotId": r.slot_id,
        "date": api_iso_z(r.date)[:10],
        "time": r.time_label,
        "timeSlot": {"startTime": r.start_time, "endTime": r.end_time},
        "numberOfGuests": r.number_of_guests,
        "status": r.status,
        "instructions": r.instructions,
        "subscribeToPromotions": r.subscribe_to_promotions,
        "createdAt": api_iso_z(r.created_at) if r.created_at else None,
    }


def list_partner_reservations(actor) -> list[dict]:
    rows = db.session.execute(
        select(Reservation)
        .where(Reservation.restaurant_id == actor.id)
        .order_by(Reservation.date.desc(), Reservation.start_time.asc())
    ).scalars().all()
    return [format_reservation(r) for r in rows]
