"""Admin blueprint: verification review, user administration and audit logs."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request, send_file
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import BadRequest, NotFound

from models import db
from models.audit_log import AuditLog
from models.enums import (
    ACCOUNT_STATUSES,
    AUDIT_ACTIONS,
    USER_ROLES,
    VERIFICATION_STATUSES,
)
from models.user import User
from services import audit, sessions, verification
from storage.local_storage import LocalStorage
from utils.current_user import require_admin
from utils.request_validation import (
    optional_json_body,
    parse_choice,
    parse_datetime,
    parse_json_request,
    parse_text,
)

admin_bp = Blueprint("admin_verify", __name__)

MAX_AUDIT_PAGE = 500


def _worker_detail(worker) -> dict:
    data = worker.to_dict(include_requirements=True)
    user = worker.user
    data["user"] = {
        "id": user.id,
        "email": user.email,
        "status": user.status,
        "email_verified": user.email_verified.isoformat() if user.email_verified else None,
        "last_login_at": user.last_login_at.isoformat() if user.last_login_at else None,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
    return data


def _get_user_or_404(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User not found.")
    return user


# Worker verification review


@admin_bp.route("/workers/pending", methods=["GET"])
@jwt_required()
def list_pending_workers():
    """Workers awaiting review, oldest submission first."""

    require_admin()
    return jsonify(
        [_worker_detail(worker) for worker in verification.workers_awaiting_review()]
    )


@admin_bp.route("/workers", methods=["GET"])
@jwt_required()
def list_workers():
    require_admin()
    status = request.args.get("status")
    if status:
        status = parse_choice(status, VERIFICATION_STATUSES, "status")
    return jsonify(
        [worker.to_dict() for worker in verification.workers_by_status(status)]
    )


@admin_bp.route("/workers/<int:worker_id>", methods=["GET"])
@jwt_required()
def get_worker(worker_id: int):
    require_admin()
    return jsonify(_worker_detail(verification.get_worker_or_404(worker_id)))


@admin_bp.route("/workers/<int:worker_id>/approve", methods=["POST"])
@jwt_required()
def approve_worker(worker_id: int):
    """Approve a worker and every submitted requirement."""

    reviewer = require_admin()
    worker = verification.get_worker_or_404(worker_id)
    payload = optional_json_body(request)
    verification.approve_worker(
        worker, reviewer, parse_text(payload.get("notes"), "notes") or None
    )
    return jsonify(_worker_detail(worker))


@admin_bp.route("/workers/<int:worker_id>/reject", methods=["POST"])
@jwt_required()
def reject_worker(worker_id: int):
    """Reject a worker; a reason is mandatory."""

    reviewer = require_admin()
    worker = verification.get_worker_or_404(worker_id)
    payload = optional_json_body(request)
    verification.reject_worker(worker, reviewer, payload.get("reason"))
    return jsonify(_worker_detail(worker))


@admin_bp.route("/workers/<int:worker_id>/publish", methods=["POST"])
@jwt_required()
def publish_worker(worker_id: int):
    """Show or hide a worker profile in listings."""

    admin = require_admin()
    worker = verification.get_worker_or_404(worker_id)
    payload = parse_json_request(request, allow_empty=True)
    is_published = payload.get("is_published")
    if not isinstance(is_published, bool):
        raise BadRequest("is_published must be a boolean.")
    verification.set_published(worker, is_published)
    current_app.logger.info(
        "Worker %s published=%s by admin %s", worker.id, is_published, admin.id
    )
    return jsonify(_worker_detail(worker))


@admin_bp.route("/verification/statistics", methods=["GET"])
@jwt_required()
def verification_statistics():
    require_admin()
    return jsonify(verification.verification_statistics())


@admin_bp.route(
    "/workers/<int:worker_id>/requirements/<int:requirement_id>/approve",
    methods=["POST"],
)
@jwt_required()
def approve_requirement(worker_id: int, requirement_id: int):
    reviewer = require_admin()
    requirement = verification.get_requirement_or_404(requirement_id, worker_id)
    requirement, changed = verification.approve_requirement(requirement, reviewer)
    message = "Document approved successfully." if changed else "Document is already approved."
    return jsonify({"message": message, "requirement": requirement.to_dict()})


@admin_bp.route(
    "/workers/<int:worker_id>/requirements/<int:requirement_id>/reject",
    methods=["POST"],
)
@jwt_required()
def reject_requirement(worker_id: int, requirement_id: int):
    reviewer = require_admin()
    requirement = verification.get_requirement_or_404(requirement_id, worker_id)
    payload = optional_json_body(request)
    requirement, changed = verification.reject_requirement(
        requirement, reviewer, payload.get("rejection_reason") or payload.get("reason")
    )
    message = "Document rejected successfully." if changed else "Document is already rejected."
    return jsonify({"message": message, "requirement": requirement.to_dict()})


@admin_bp.route(
    "/workers/<int:worker_id>/requirements/<int:requirement_id>/reset",
    methods=["POST"],
)
@jwt_required()
def reset_requirement(worker_id: int, requirement_id: int):
    reviewer = require_admin()
    requirement = verification.get_requirement_or_404(requirement_id, worker_id)
    verification.reset_requirement(requirement, reviewer)
    return jsonify(
        {
            "message": "Document reset to review successfully.",
            "requirement": requirement.to_dict(),
        }
    )


@admin_bp.route(
    "/workers/<int:worker_id>/requirements/<int:requirement_id>/expiry",
    methods=["PUT"],
)
@jwt_required()
def update_requirement_expiry(worker_id: int, requirement_id: int):
    require_admin()
    requirement = verification.get_requirement_or_404(requirement_id, worker_id)
    payload = parse_json_request(request, allow_empty=True)
    if "expires_at" not in payload:
        raise BadRequest("expires_at must be provided (null clears it).")
    expires_at = parse_datetime(payload.get("expires_at"), "expires_at")
    verification.update_requirement_expiry(requirement, expires_at)
    return jsonify(
        {
            "message": "Expiration date updated successfully.",
            "requirement": requirement.to_dict(),
        }
    )


@admin_bp.route("/requirements/expire", methods=["POST"])
@jwt_required()
def expire_requirements():
    require_admin()
    return jsonify({"expired": verification.expire_requirements()})


@admin_bp.route("/requirements/<int:requirement_id>/document", methods=["GET"])
@jwt_required()
def download_document(requirement_id: int):
    """Allow an administrator to download a stored verification document."""

    require_admin()
    requirement = verification.get_requirement_or_404(requirement_id)
    if not requirement.document_url:
        raise NotFound("No document has been uploaded.")

    storage = LocalStorage(current_app.config.get("UPLOAD_DIR"))
    if not storage.exists(requirement.document_url):
        raise NotFound("Stored file could not be found.")

    return send_file(
        storage.absolute_path(requirement.document_url),
        as_attachment=True,
        download_name=requirement.document_url.rsplit("/", 1)[-1],
    )


# User administration


@admin_bp.route("/users", methods=["GET"])
@jwt_required()
def list_users():
    require_admin()
    query = User.query
    role = request.args.get("role")
    if role:
        query = query.filter_by(role=parse_choice(role, USER_ROLES, "role"))
    status = request.args.get("status")
    if status:
        query = query.filter_by(status=parse_choice(status, ACCOUNT_STATUSES, "status"))
    return jsonify([user.to_dict() for user in query.order_by(User.id.asc()).all()])


@admin_bp.route("/users/<int:user_id>/role", methods=["PATCH"])
@jwt_required()
def change_role(user_id: int):
    admin = require_admin()
    user = _get_user_or_404(user_id)
    payload = parse_json_request(request, required_keys=["role"])
    role = parse_choice(payload.get("role"), USER_ROLES, "role")
    if user.id == admin.id:
        raise BadRequest("Administrators cannot change their own role.")

    previous = user.role
    if previous != role:
        user.role = role
        audit.record_event(
            "ROLE_CHANGE",
            user_id=user.id,
            metadata={"from": previous, "to": role, "admin_user_id": admin.id},
        )
        db.session.commit()
        current_app.logger.info(
            "User %s role changed %s -> %s by admin %s", user.id, previous, role, admin.id
        )
    return jsonify(user.to_dict())


@admin_bp.route("/users/<int:user_id>/status", methods=["PATCH"])
@jwt_required()
def change_status(user_id: int):
    admin = require_admin()
    user = _get_user_or_404(user_id)
    payload = parse_json_request(request, required_keys=["status"])
    status = parse_choice(payload.get("status"), ACCOUNT_STATUSES, "status")
    if user.id == admin.id and status != "ACTIVE":
        raise BadRequest("Administrators cannot deactivate themselves.")

    previous = user.status
    if previous != status:
        user.status = status
        if status != "ACTIVE":
            sessions.revoke_all_sessions(user)
        audit.record_event(
            "STATUS_CHANGE",
            user_id=user.id,
            metadata={"from": previous, "to": status, "admin_user_id": admin.id},
        )
        db.session.commit()
    return jsonify(user.to_dict())


@admin_bp.route("/users/<int:user_id>/unlock", methods=["POST"])
@jwt_required()
def unlock_user(user_id: int):
    admin = require_admin()
    user = _get_user_or_404(user_id)
    user.clear_lockout()
    audit.record_event(
        "ACCOUNT_UNLOCKED", user_id=user.id, metadata={"admin_user_id": admin.id}
    )
    db.session.commit()
    return jsonify(user.to_dict())


@admin_bp.route("/users/<int:user_id>", methods=["DELETE"])
@jwt_required()
def delete_user(user_id: int):
    """Delete a user; their audit history is kept without the user reference."""

    admin = require_admin()
    user = _get_user_or_404(user_id)
    if user.id == admin.id:
        raise BadRequest("Administrators cannot delete themselves.")

    AuditLog.query.filter_by(user_id=user.id).update(
        {"user_id": None}, synchronize_session="fetch"
    )
    deleted = {"deleted_user_id": user.id, "email": user.email, "admin_user_id": admin.id}
    documents = []
    if user.worker_profile is not None:
        documents = [
            requirement.document_url
            for requirement in user.worker_profile.verification_requirements
            if requirement.document_url
        ]
    db.session.delete(user)
    audit.record_event("USER_DELETED", metadata=deleted)
    db.session.commit()

    # Files go only once the rows are gone.
    storage = LocalStorage(current_app.config.get("UPLOAD_DIR"))
    for document_url in documents:
        storage.delete(document_url)
    return jsonify({"message": "User deleted.", "id": deleted["deleted_user_id"]})


@admin_bp.route("/audit-logs", methods=["GET"])
@jwt_required()
def list_audit_logs():
    require_admin()
    user_id = request.args.get("user_id", type=int)
    action = request.args.get("action")
    if action:
        action = parse_choice(action, AUDIT_ACTIONS, "action")
    limit = request.args.get("limit", default=100, type=int)
    if limit is None or limit < 1:
        raise BadRequest("limit must be a positive integer.")
    limit = min(limit, MAX_AUDIT_PAGE)
    events = audit.list_events(user_id=user_id, action=action, limit=limit)
    return jsonify([event.to_dict() for event in events])
