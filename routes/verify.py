"""Verification blueprint for worker document uploads and submission."""

from __future__ import annotations

import os
import uuid
from pathlib import Path

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import BadRequest, NotFound

from models.enums import DOCUMENT_CATEGORIES
from models.worker_profile import WorkerProfile
from services import verification
from storage.local_storage import LocalStorage
from utils.current_user import require_role
from utils.request_validation import (
    parse_bool,
    parse_choice,
    parse_datetime,
    parse_extensions,
)

verify_bp = Blueprint("verify", __name__)

MAX_UPLOAD_SIZE_DEFAULT = 10 * 1024 * 1024  # 10 MB
ALLOWED_EXTENSIONS_DEFAULT = {"jpeg", "jpg", "png", "pdf"}


def _require_worker() -> WorkerProfile:
    user = require_role("WORKER")
    if user.worker_profile is None:
        raise NotFound("Worker profile not found.")
    return user.worker_profile


def _allowed_extensions() -> set[str]:
    return parse_extensions(
        current_app.config.get("ALLOWED_UPLOAD_TYPES"), ALLOWED_EXTENSIONS_DEFAULT
    )


def _validate_document(file: FileStorage) -> None:
    if file.filename is None or file.filename.strip() == "":
        raise BadRequest("A document file is required.")

    extension = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    if extension not in _allowed_extensions():
        allowed = ", ".join(sorted(_allowed_extensions()))
        raise BadRequest(f"File type not allowed. Allowed types: {allowed}.")

    max_size = int(current_app.config.get("MAX_UPLOAD_SIZE", MAX_UPLOAD_SIZE_DEFAULT))
    file.stream.seek(0, os.SEEK_END)
    size = file.stream.tell()
    file.stream.seek(0)
    if size == 0:
        raise BadRequest("The document file is empty.")
    if size > max_size:
        raise BadRequest(
            f"File exceeds the maximum upload size of {max_size // (1024 * 1024)}MB."
        )


def _build_unique_filename(original: str) -> str:
    return f"{uuid.uuid4().hex}{Path(original).suffix.lower()}"


@verify_bp.route("/requirements", methods=["POST"])
@jwt_required()
def upload_requirement():
    """Upload a compliance document for one requirement type."""

    worker = _require_worker()

    file = request.files.get("document")
    if not isinstance(file, FileStorage):
        raise BadRequest("A document file is required.")
    _validate_document(file)

    requirement_type = (request.form.get("requirement_type") or "").strip().lower()
    if not requirement_type:
        raise BadRequest("requirement_type is required.")

    category = request.form.get("document_category")
    document_category = (
        parse_choice(category, DOCUMENT_CATEGORIES, "document_category")
        if category
        else None
    )
    raw_required = request.form.get("is_required")
    is_required = parse_bool(raw_required)
    if is_required is None and raw_required not in (None, ""):
        raise BadRequest("is_required must be true or false.")
    expires_at = parse_datetime(request.form.get("expires_at"), "expires_at")

    existing = worker.requirement_of_type(requirement_type)
    previous_path = existing.document_url if existing is not None else None

    storage = LocalStorage(current_app.config.get("UPLOAD_DIR"))
    stored_path = storage.save(
        file,
        _build_unique_filename(file.filename or "document"),
        folder=f"worker-{worker.id}",
    )

    requirement = verification.record_upload(
        worker,
        requirement_type=requirement_type,
        document_url=stored_path,
        requirement_name=(request.form.get("requirement_name") or "").strip() or None,
        document_category=document_category,
        is_required=True if is_required is None else is_required,
        expires_at=expires_at,
    )
    if previous_path and previous_path != stored_path:
        storage.delete(previous_path)
    current_app.logger.info(
        "Worker %s uploaded %s", worker.id, requirement.requirement_type
    )

    return (
        jsonify(
            {
                "requirement": requirement.to_dict(),
                "verification_status": worker.verification_status,
            }
        ),
        201,
    )


@verify_bp.route("/requirements", methods=["GET"])
@jwt_required()
def list_requirements():
    worker = _require_worker()
    return jsonify(
        [requirement.to_dict() for requirement in worker.verification_requirements]
    )


@verify_bp.route("/requirements/<int:requirement_id>", methods=["DELETE"])
@jwt_required()
def delete_requirement(requirement_id: int):
    """Remove one of the caller's documents and its stored file."""

    worker = _require_worker()
    requirement = verification.get_requirement_or_404(requirement_id, worker.id)
    document_url = verification.remove_requirement(requirement)
    if document_url:
        LocalStorage(current_app.config.get("UPLOAD_DIR")).delete(document_url)
    return jsonify({"message": "Document deleted.", "id": requirement_id})


@verify_bp.route("/submit", methods=["POST"])
@jwt_required()
def submit_for_review():
    """Send the worker's documents to the admin review queue."""

    worker = verification.submit_for_review(_require_worker())
    return jsonify(verification.status_summary(worker))


@verify_bp.route("/status", methods=["GET"])
@jwt_required()
def verification_status():
    """Return the worker's verification status and requirement counts."""

    return jsonify(verification.status_summary(_require_worker()))
