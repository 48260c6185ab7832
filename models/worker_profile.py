"""WorkerProfile model definition."""

from datetime import datetime
from typing import Optional

from . import db
from .enums import VERIFICATION_STATUSES


# Fields a worker may change through the profile endpoint.
EDITABLE_FIELDS = (
    "first_name",
    "middle_name",
    "last_name",
    "mobile",
    "location",
    "city",
    "state",
    "postal_code",
    "latitude",
    "longitude",
    "age",
    "date_of_birth",
    "gender",
    "languages",
    "services",
    "support_worker_categories",
    "experience",
    "introduction",
    "qualifications",
    "has_vehicle",
    "fun_fact",
    "hobbies",
    "unique_service",
    "abn",
    "photos",
    "setup_progress",
)
LIST_FIELDS = ("languages", "services", "support_worker_categories")


class WorkerProfile(db.Model):
    """Extended profile and verification state for a WORKER user."""

    __tablename__ = "worker_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    first_name = db.Column(db.String(120), nullable=False)
    middle_name = db.Column(db.String(120), nullable=True)
    last_name = db.Column(db.String(120), nullable=False)
    mobile = db.Column(db.String(32), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    city = db.Column(db.String(120), nullable=True)
    state = db.Column(db.String(64), nullable=True)
    postal_code = db.Column(db.String(16), nullable=True)
    latitude = db.Column(db.Float, nullable=True)
    longitude = db.Column(db.Float, nullable=True)
    age = db.Column(db.Integer, nullable=True)
    date_of_birth = db.Column(db.String(32), nullable=True)
    gender = db.Column(db.String(32), nullable=True)

    languages = db.Column(db.JSON, nullable=False, default=list)
    services = db.Column(db.JSON, nullable=False, default=list)
    support_worker_categories = db.Column(db.JSON, nullable=False, default=list)

    experience = db.Column(db.Text, nullable=True)
    introduction = db.Column(db.Text, nullable=True)
    qualifications = db.Column(db.Text, nullable=True)
    has_vehicle = db.Column(db.String(32), nullable=True)
    fun_fact = db.Column(db.Text, nullable=True)
    hobbies = db.Column(db.Text, nullable=True)
    unique_service = db.Column(db.Text, nullable=True)
    abn = db.Column(db.String(32), nullable=True)

    photos = db.Column(db.JSON, nullable=True)
    verification_checklist = db.Column(db.JSON, nullable=True)
    submitted_documents = db.Column(db.JSON, nullable=True)
    setup_progress = db.Column(db.JSON, nullable=True)

    profile_completed = db.Column(db.Boolean, nullable=False, default=False)
    is_published = db.Column(db.Boolean, nullable=False, default=False)

    verification_status = db.Column(
        db.Enum(*VERIFICATION_STATUSES, name="verification_status"),
        nullable=False,
        default="NOT_STARTED",
        server_default=db.text("'NOT_STARTED'"),
        index=True,
    )
    verification_submitted_at = db.Column(db.DateTime, nullable=True)
    verification_reviewed_at = db.Column(db.DateTime, nullable=True)
    verification_approved_at = db.Column(db.DateTime, nullable=True)
    verification_rejected_at = db.Column(db.DateTime, nullable=True)
    verification_notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user = db.relationship("User", back_populates="worker_profile")
    verification_requirements = db.relationship(
        "VerificationRequirement",
        back_populates="worker_profile",
        cascade="all, delete-orphan",
        order_by="VerificationRequirement.created_at.desc()",
    )

    def requirement_of_type(self, requirement_type: str):
        for requirement in self.verification_requirements:
            if requirement.requirement_type == requirement_type:
                return requirement
        return None

    def mark_in_progress(self) -> None:
        """Reopen verification after a document change."""

        if self.verification_status in ("NOT_STARTED", "REJECTED", "APPROVED"):
            self.verification_status = "IN_PROGRESS"
            self.is_published = False

    def mark_submitted(self, now: Optional[datetime] = None) -> None:
        self.verification_status = "PENDING_REVIEW"
        self.verification_submitted_at = now or datetime.utcnow()

    def mark_approved(self, notes: Optional[str] = None, now: Optional[datetime] = None) -> None:
        now = now or datetime.utcnow()
        self.verification_status = "APPROVED"
        self.verification_reviewed_at = now
        self.verification_approved_at = now
        self.verification_notes = notes or "Approved by admin"
        self.is_published = True

    def mark_rejected(self, reason: str, now: Optional[datetime] = None) -> None:
        now = now or datetime.utcnow()
        self.verification_status = "REJECTED"
        self.verification_reviewed_at = now
        self.verification_rejected_at = now
        self.verification_notes = reason
        self.is_published = False

    def to_dict(self, include_requirements: bool = False) -> dict:
        """Serialize the worker profile."""

        data = {
            "id": self.id,
            "user_id": self.user_id,
            "verification_status": self.verification_status,
            "verification_submitted_at": _iso(self.verification_submitted_at),
            "verification_reviewed_at": _iso(self.verification_reviewed_at),
            "verification_approved_at": _iso(self.verification_approved_at),
            "verification_rejected_at": _iso(self.verification_rejected_at),
            "verification_notes": self.verification_notes,
            "verification_checklist": self.verification_checklist,
            "submitted_documents": self.submitted_documents,
            "profile_completed": self.profile_completed,
            "is_published": self.is_published,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        for field in EDITABLE_FIELDS:
            data[field] = getattr(self, field)
        if include_requirements:
            data["verification_requirements"] = [
                requirement.to_dict() for requirement in self.verification_requirements
            ]
        return data


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None
