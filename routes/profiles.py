"""Profile blueprint for the caller's role-specific profile."""

from __future__ import annotations

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest, NotFound

from models import client_profile, coordinator_profile, db, worker_profile
from services import audit
from utils.current_user import require_user
from utils.request_validation import parse_json_request

profiles_bp = Blueprint("profiles", __name__)

EDITABLE_FIELDS = {
    "WORKER": worker_profile.EDITABLE_FIELDS,
    "CLIENT": client_profile.EDITABLE_FIELDS,
    "COORDINATOR": coordinator_profile.EDITABLE_FIELDS,
}
REQUIRED_FIELDS = {"first_name", "last_name", "mobile"}
NUMERIC_FIELDS = {"latitude": float, "longitude": float, "age": int}


def _require_profile():
    user = require_user()
    profile = user.profile
    if profile is None:
        raise NotFound("Profile not found.")
    return user, profile


def _clean_value(field: str, value: object) -> object:
    if field in worker_profile.LIST_FIELDS:
        if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
            raise BadRequest(f"{field} must be a list of strings.")
        return [v.strip() for v in value if v.strip()]
    if field in NUMERIC_FIELDS:
        if value is None:
            return None
        if isinstance(value, bool):
            raise BadRequest(f"{field} must be a number.")
        try:
            return NUMERIC_FIELDS[field](value)
        except (TypeError, ValueError) as exc:
            raise BadRequest(f"{field} must be a number.") from exc
    if field in ("photos", "setup_progress"):
        return value
    if value is None:
        if field in REQUIRED_FIELDS:
            raise BadRequest(f"{field} cannot be empty.")
        return None
    if not isinstance(value, str):
        raise BadRequest(f"{field} must be a string.")
    text = value.strip()
    if field in REQUIRED_FIELDS and not text:
        raise BadRequest(f"{field} cannot be empty.")
    return text or None


@profiles_bp.route("", methods=["GET"])
@jwt_required()
def get_profile():
    """Return the caller's profile."""

    user, profile = _require_profile()
    return jsonify({"role": user.role, "profile": profile.to_dict()})


@profiles_bp.route("", methods=["PATCH"])
@jwt_required()
def update_profile():
    """Update whitelisted fields on the caller's profile."""

    user, profile = _require_profile()
    payload = parse_json_request(request)

    allowed = EDITABLE_FIELDS[user.role]
    unknown = sorted(set(payload) - set(allowed))
    if unknown:
        raise BadRequest("Unknown or read-only fields: {}.".format(", ".join(unknown)))

    changed = []
    for field, raw in payload.items():
        value = _clean_value(field, raw)
        if getattr(profile, field) != value:
            setattr(profile, field, value)
            changed.append(field)

    if changed:
        audit.record_event(
            "PROFILE_UPDATE",
            user_id=user.id,
            metadata={"fields": sorted(changed)},
        )
        db.session.commit()

    return jsonify({"role": user.role, "profile": profile.to_dict(), "changed": sorted(changed)})
