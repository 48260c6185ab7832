"""VerificationRequirement model definition."""

from datetime import datetime
from typing import Optional

from . import db
from .enums import DOCUMENT_CATEGORIES, REQUIREMENT_STATUSES


class VerificationRequirement(db.Model):
    """One compliance document a worker must provide and an admin reviews."""

    __tablename__ = "verification_requirements"
    __table_args__ = (
        db.Index(
            "ix_verification_requirements_profile_type",
            "worker_profile_id",
            "requirement_type",
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    worker_profile_id = db.Column(
        db.Integer,
        db.ForeignKey("worker_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    requirement_type = db.Column(db.String(120), nullable=False)
    requirement_name = db.Column(db.String(255), nullable=False)
    document_category = db.Column(
        db.Enum(*DOCUMENT_CATEGORIES, name="document_category"), nullable=True
    )
    is_required = db.Column(db.Boolean, nullable=False, default=True)
    status = db.Column(
        db.Enum(*REQUIREMENT_STATUSES, name="requirement_status"),
        nullable=False,
        default="PENDING",
        server_default=db.text("'PENDING'"),
        index=True,
    )

    document_url = db.Column(db.String(512), nullable=True)
    document_uploaded_at = db.Column(db.DateTime, nullable=True)
    submitted_at = db.Column(db.DateTime, nullable=True)
    reviewed_at = db.Column(db.DateTime, nullable=True)
    reviewed_by = db.Column(db.String(255), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)
    rejected_at = db.Column(db.DateTime, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    worker_profile = db.relationship(
        "WorkerProfile", back_populates="verification_requirements"
    )

    def submit_document(
        self,
        document_url: str,
        expires_at: Optional[datetime] = None,
        now: Optional[datetime] = None,
    ) -> None:
        """Attach a new upload and clear any earlier review outcome."""

        now = now or datetime.utcnow()
        self.document_url = document_url
        self.document_uploaded_at = now
        self.submitted_at = now
        self.expires_at = expires_at
        self.status = "SUBMITTED"
        self.reviewed_at = None
        self.reviewed_by = None
        self.approved_at = None
        self.rejected_at = None
        self.rejection_reason = None

    def approve(self, reviewer: str, now: Optional[datetime] = None) -> None:
        now = now or datetime.utcnow()
        self.status = "APPROVED"
        self.approved_at = now
        self.reviewed_at = now
        self.reviewed_by = reviewer
        self.rejected_at = None
        self.rejection_reason = None

    def reject(self, reviewer: str, reason: str, now: Optional[datetime] = None) -> None:
        now = now or datetime.utcnow()
        self.status = "REJECTED"
        self.rejected_at = now
        self.reviewed_at = now
        self.reviewed_by = reviewer
        self.rejection_reason = reason
        self.approved_at = None

    def reset_to_review(self, reviewer: str, now: Optional[datetime] = None) -> None:
        now = now or datetime.utcnow()
        entry = f"[{now.isoformat()}] Reset to review by {reviewer}"
        self.status = "SUBMITTED"
        self.reviewed_at = now
        self.reviewed_by = reviewer
        self.approved_at = None
        self.rejected_at = None
        self.rejection_reason = None
        self.notes = f"{self.notes}\n{entry}" if self.notes else entry

    def to_dict(self) -> dict:
        """Serialize the requirement."""

        return {
            "id": self.id,
            "worker_profile_id": self.worker_profile_id,
            "requirement_type": self.requirement_type,
            "requirement_name": self.requirement_name,
            "document_category": self.document_category,
            "is_required": self.is_required,
            "status": self.status,
            "document_url": self.document_url,
            "document_uploaded_at": _iso(self.document_uploaded_at),
            "submitted_at": _iso(self.submitted_at),
            "reviewed_at": _iso(self.reviewed_at),
            "reviewed_by": self.reviewed_by,
            "approved_at": _iso(self.approved_at),
            "rejected_at": _iso(self.rejected_at),
            "expires_at": _iso(self.expires_at),
            "notes": self.notes,
            "rejection_reason": self.rejection_reason,
            "created_at": _iso(self.created_at),
        }

    def __repr__(self) -> str:
        return (
            f"<VerificationRequirement id={self.id} "
            f"type={self.requirement_type} status={self.status}>"
        )


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
