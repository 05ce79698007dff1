from flask import Blueprint, g, jsonify, request

from ..auth import require_auth, require_partner
from ..errors import Forbidden
from ..http import jerror
from ..schemas import CustomSlotRequest, PatchSlotRequest, ReplaceAvailabilityRequest, UpdateSlotRequest
from ..services import availability as svc
from ..utils.time import parse_day

bp = Blueprint("availability", __name__)


@bp.get("/<int:restaurant_id>/<date_str>")
def get_availability(restaurant_id: int, date_str: str):
    try:
        day = parse_day(date_str)
    except ValueError as e:
        return jerror(422, "BAD_DATE", "Invalid date format. Use YYYY-MM-DD.", str(e))

    record = svc.resolve_day(restaurant_id, day)
    data = record.to_dict()
    return jsonify(id=data["id"], timeSlots=data["timeSlots"], date=data["date"])


@bp.post("")
@require_partner
def replace_availability():
    payload = request.get_json(silent=True)
    if not payload:
        return jerror(400, "INVALID_PAYLOAD", "Missing or invalid JSON payload.")

    data = ReplaceAvailabilityRequest.model_validate(payload)
    svc.get_restaurant(g.auth.id)
    record = svc.replace_day(g.auth.id, data.date, data.time_slots)
    return jsonify(record.to_dict()), 201


@bp.post("/custom")
@require_auth
def add_custom_time_slot():
    payload = request.get_json(silent=True)
    if not payload:
        return jerror(400, "INVALID_PAYLOAD", "Missing required fields.")

    data = CustomSlotRequest.model_validate(payload)
    if not g.auth.can_manage(data.restaurant_id):
        raise Forbidden("You do not manage this restaurant.")

    svc.get_restaurant(data.restaurant_id)
    record = svc.add_custom_slot(data.restaurant_id, data.date, data.time_slot)
    return jsonify(record.to_dict()), 201


@bp.patch("/<int:availability_id>/slot/<int:slot_id>")
@require_partner
def patch_time_slot(availability_id: int, slot_id: int):
    payload = request.get_json(silent=True) or {}
    changes = PatchSlotRequest.model_validate(payload)
    record = svc.patch_slot(availability_id, slot_id, changes, g.auth)
    return jsonify(record.to_dict())


@bp.put("/<int:slot_id>")
@require_auth
def update_time_slot(slot_id: int):
    payload = request.get_json(silent=True)
    if not payload:
        return jerror(400, "INVALID_PAYLOAD", "Missing or invalid JSON payload.")

    data = UpdateSlotRequest.model_validate(payload)
    record = svc.update_slot(slot_id, data.time_slot, g.auth)
    return jsonify(record.to_dict())


@bp.delete("/<int:slot_id>")
@require_auth
def delete_time_slot(slot_id: int):
    svc.delete_slot(slot_id, g.auth)
    return jsonify(message="Time slot deleted successfully")
