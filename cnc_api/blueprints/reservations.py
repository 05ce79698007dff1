from flask import Blueprint, request, jsonify, current_app, g
from sqlalchemy import select, func
from datetime import datetime, timezone
from ..extensions import db
from ..models import Reservation, User
from ..http import jerror
from ..auth import require_admin, require_auth, require_partner
from ..utils.time import day_bounds
from ..schemas import CreateReservationRequest, StatusUpdateRequest
from ..services.booking import create_reservation as book
from ..services.status import change_status, delete_reservation as remove, format_reservation, list_partner_reservations

bp = Blueprint("reservations", __name__)

_rate_state: dict[str, tuple[int, int]] = {}


def _allow(ip: str) -> bool:
    window_seconds = current_app.config["RATE_LIMIT_WINDOW"]
    limit = current_app.config["RATE_LIMIT_MAX"]
    now = int(datetime.now(tz=timezone.utc).timestamp())
    window = now // window_seconds
    # Only the current window is kept.
    for stale in [k for k, (_, w) in _rate_state.items() if w != window]:
        del _rate_state[stale]
    count = _rate_state.get(ip, (0, window))[0] + 1
    _rate_state[ip] = (count, window)
    return count <= limit


def _client_ip() -> str:
    fwd = request.headers.get("X-Forwarded-For")
    return (fwd.split(",")[0].strip() if fwd else request.remote_addr or "0.0.0.0")


@bp.post("")
def create_reservation():
    ip = _client_ip()
    if not _allow(ip):
        return jerror(429, "RATE_LIMITED", "Too many requests. Try again shortly.")

    payload = request.get_json(silent=True)
    if not payload:
        return jerror(400, "INVALID_PAYLOAD", "Missing or invalid JSON payload.")

    data = CreateReservationRequest.model_validate(payload)
    reservation = book(data)

    return jsonify(message="Reservation confirmed!", reservationId=reservation.id, status=reservation.status), 201


@bp.get("/partner")
@require_partner
def partner_reservations():
    return jsonify(list_partner_reservations(g.auth))


@bp.put("/<int:reservation_id>/status")
@require_auth
def update_status(reservation_id: int):
    payload = request.get_json(silent=True)
    if not payload:
        return jerror(400, "INVALID_PAYLOAD", "Missing or invalid JSON payload.")

    data = StatusUpdateRequest.model_validate(payload)
    reservation = change_status(reservation_id, data.status, g.auth)
    return jsonify(message=f"Reservation {reservation.status}", reservation=format_reservation(reservation))


@bp.delete("/<int:reservation_id>")
@require_auth
def delete_reservation(reservation_id: int):
    remove(reservation_id, g.auth)
    return jsonify(message="Reservation deleted successfully")


@bp.get("")
@require_admin
def list_reservations():
    """
    Admin list for a single day with pagination.
    Query: ?date=YYYY-MM-DD&page=1&page_size=20
    """
    date_str = request.args.get("date")
    if not date_str:
        return jerror(400, "MISSING_DATE", "Missing 'date' query parameter (YYYY-MM-DD).")
    try:
        day = datetime.fromisoformat(date_str).date()
    except Exception as e:
        return jerror(422, "BAD_DATE", "Invalid date format. Use YYYY-MM-DD.", str(e))

    try:
        page = max(int(request.args.get("page", 1)), 1)
        page_size = min(max(int(request.args.get("page_size", 20)), 1), 100)
    except ValueError:
        return jerror(422, "BAD_PAGE", "page and page_size must be integers.")

    start_db, end_db = day_bounds(day)
    conditions = (Reservation.date >= start_db, Reservation.date < end_db)

    total = db.session.execute(
        select(func.count()).select_from(Reservation).where(*conditions)
    ).scalar_one()
    rows = db.session.execute(
        select(Reservation, User)
        .join(User, Reservation.restaurant_id == User.id)
        .where(*conditions)
        .order_by(Reservation.start_time.asc(), Reservation.id.asc())
        .limit(page_size)
        .offset((page - 1) * page_size)
    ).all()

    data = []
    for reservation, restaurant in rows:
        item = format_reservation(reservation)
        item["restaurant"] = {"id": restaurant.id, "name": restaurant.display_name}
        data.append(item)

    return jsonify(page=page, pageSize=page_size, total=total, reservations=data)
