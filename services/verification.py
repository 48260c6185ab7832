"""Worker verification workflow: uploads, submission and admin review."""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func
from werkzeug.exceptions import BadRequest, Conflict, NotFound

from models import db
from models.enums import VERIFICATION_STATUSES
from models.user import User
from models.verification_requirement import VerificationRequirement
from models.worker_profile import WorkerProfile
from services import audit
from utils.request_validation import parse_text

# Required requirements in these states block submission for review.
BLOCKING_STATUSES = ("PENDING", "REJECTED", "EXPIRED")


def get_worker_or_404(worker_profile_id: int) -> WorkerProfile:
    worker = db.session.get(WorkerProfile, worker_profile_id)
    if worker is None:
        raise NotFound("Worker not found.")
    return worker


def get_requirement_or_404(
    requirement_id: int, worker_profile_id: int | None = None
) -> VerificationRequirement:
    requirement = db.session.get(VerificationRequirement, requirement_id)
    if requirement is None or (
        worker_profile_id is not None
        and requirement.worker_profile_id != worker_profile_id
    ):
        raise NotFound("Document not found.")
    return requirement


def record_upload(
    worker: WorkerProfile,
    *,
    requirement_type: str,
    document_url: str,
    requirement_name: str | None = None,
    document_category: str | None = None,
    is_required: bool = True,
    expires_at: datetime | None = None,
) -> VerificationRequirement:
    """Create or replace the worker's requirement of ``requirement_type``."""

    requirement = worker.requirement_of_type(requirement_type)
    if requirement is None:
        requirement = VerificationRequirement(
            requirement_type=requirement_type,
            requirement_name=requirement_name or requirement_type,
            document_category=document_category,
            is_required=is_required,
        )
        worker.verification_requirements.append(requirement)
    else:
        if requirement_name:
            requirement.requirement_name = requirement_name
        if document_category:
            requirement.document_category = document_category

    requirement.submit_document(document_url, expires_at=expires_at)
    worker.mark_in_progress()
    db.session.commit()
    return requirement


def remove_requirement(requirement: VerificationRequirement) -> str | None:
    """Delete a requirement row and return the stored path it referenced."""

    document_url = requirement.document_url
    worker = requirement.worker_profile
    worker_id, requirement_id = worker.id, requirement.id
    worker.verification_requirements.remove(requirement)
    db.session.commit()
    current_app.logger.info("Worker %s deleted requirement %s", worker_id, requirement_id)
    return document_url


def set_published(worker: WorkerProfile, is_published: bool) -> WorkerProfile:
    worker.is_published = is_published
    db.session.commit()
    return worker


def submit_for_review(worker: WorkerProfile) -> WorkerProfile:
    if worker.verification_status in ("PENDING_REVIEW", "APPROVED"):
        raise Conflict(
            f"Verification is already {worker.verification_status.lower()}."
        )
    if not worker.verification_requirements:
        raise BadRequest("Upload at least one document before submitting.")

    outstanding = sorted(
        requirement.requirement_name
        for requirement in worker.verification_requirements
        if requirement.is_required and requirement.status in BLOCKING_STATUSES
    )
    if outstanding:
        raise BadRequest(
            "Required documents are incomplete: {}.".format(", ".join(outstanding))
        )

    worker.mark_submitted()
    audit.record_event(
        "PROFILE_UPDATE",
        user_id=worker.user_id,
        metadata={"action": "SUBMITTED_FOR_VERIFICATION"},
    )
    db.session.commit()
    return worker


def status_summary(worker: WorkerProfile) -> dict:
    counts = {}
    for requirement in worker.verification_requirements:
        counts[requirement.status] = counts.get(requirement.status, 0) + 1
    return {
        "worker_profile_id": worker.id,
        "verification_status": worker.verification_status,
        "verification_submitted_at": _iso(worker.verification_submitted_at),
        "verification_reviewed_at": _iso(worker.verification_reviewed_at),
        "verification_notes": worker.verification_notes,
        "is_published": worker.is_published,
        "requirement_counts": counts,
    }


def workers_awaiting_review() -> list[WorkerProfile]:
    """PENDING_REVIEW workers, oldest submission first."""

    return (
        WorkerProfile.query.filter_by(verification_status="PENDING_REVIEW")
        .order_by(
            WorkerProfile.verification_submitted_at.asc(), WorkerProfile.id.asc()
        )
        .all()
    )


def workers_by_status(status: str | None = None) -> list[WorkerProfile]:
    query = WorkerProfile.query
    if status:
        query = query.filter_by(verification_status=status)
    return query.order_by(WorkerProfile.created_at.desc()).all()


def verification_statistics() -> dict:
    rows = dict(
        db.session.query(WorkerProfile.verification_status, func.count(WorkerProfile.id))
        .group_by(WorkerProfile.verification_status)
        .all()
    )
    stats = {status.lower(): rows.get(status, 0) for status in VERIFICATION_STATUSES}
    stats["total"] = sum(stats.values())
    return stats


def approve_worker(
    worker: WorkerProfile, reviewer: User, notes: str | None = None
) -> WorkerProfile:
    now = datetime.utcnow()
    worker.mark_approved(notes, now=now)
    for requirement in worker.verification_requirements:
        if requirement.status == "SUBMITTED":
            requirement.approve(reviewer.email, now=now)

    audit.record_event(
        "PROFILE_UPDATE",
        user_id=worker.user_id,
        metadata={
            "action": "VERIFICATION_APPROVED",
            "admin_user_id": reviewer.id,
            "notes": notes,
        },
    )
    db.session.commit()
    current_app.logger.info(
        "Worker %s approved by admin %s", worker.id, reviewer.id
    )
    return worker


def reject_worker(
    worker: WorkerProfile, reviewer: User, reason: str | None
) -> WorkerProfile:
    reason = parse_text(reason, "reason")
    if not reason:
        raise BadRequest("A rejection reason is required.")

    now = datetime.utcnow()
    worker.mark_rejected(reason, now=now)
    for requirement in worker.verification_requirements:
        if requirement.status == "SUBMITTED":
            requirement.reject(reviewer.email, reason, now=now)

    audit.record_event(
        "PROFILE_UPDATE",
        user_id=worker.user_id,
        metadata={
            "action": "VERIFICATION_REJECTED",
            "admin_user_id": reviewer.id,
            "reason": reason,
        },
    )
    db.session.commit()
    current_app.logger.info(
        "Worker %s rejected by admin %s", worker.id, reviewer.id
    )
    return worker


def approve_requirement(
    requirement: VerificationRequirement, reviewer: User
) -> tuple[VerificationRequirement, bool]:
    """Approve one document. Returns the requirement and whether it changed."""

    if requirement.status == "APPROVED":
        return requirement, False
    if requirement.status not in ("SUBMITTED", "REJECTED"):
        raise BadRequest(
            f"Document cannot be approved from {requirement.status} status."
        )
    requirement.approve(reviewer.email)
    db.session.commit()
    return requirement, True


def reject_requirement(
    requirement: VerificationRequirement, reviewer: User, reason: str | None
) -> tuple[VerificationRequirement, bool]:
    reason = parse_text(reason, "reason")
    if not reason:
        raise BadRequest("A rejection reason is required.")
    if requirement.status == "REJECTED":
        return requirement, False
    if requirement.status not in ("SUBMITTED", "APPROVED"):
        raise BadRequest(
            f"Document cannot be rejected from {requirement.status} status."
        )
    requirement.reject(reviewer.email, reason)
    db.session.commit()
    return requirement, True


def reset_requirement(
    requirement: VerificationRequirement, reviewer: User
) -> VerificationRequirement:
    if requirement.status not in ("APPROVED", "REJECTED"):
        raise BadRequest(
            f"Document cannot be reset. Current status: {requirement.status}."
        )
    requirement.reset_to_review(reviewer.email)
    db.session.commit()
    return requirement


def update_requirement_expiry(
    requirement: VerificationRequirement, expires_at: datetime | None
) -> VerificationRequirement:
    requirement.expires_at = expires_at
    db.session.commit()
    return requirement


def expire_requirements(now: datetime | None = None) -> int:
    """Mark approved requirements whose expiry has passed as EXPIRED."""

    now = now or datetime.utcnow()
    expired = VerificationRequirement.query.filter(
        VerificationRequirement.status == "APPROVED",
        VerificationRequirement.expires_at.isnot(None),
        VerificationRequirement.expires_at <= now,
    ).all()
    for requirement in expired:
        requirement.status = "EXPIRED"
    db.session.commit()
    if expired:
        current_app.logger.info("Expired %s verification requirements", len(expired))
    return len(expired)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None
