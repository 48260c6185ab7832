"""CoordinatorProfile model definition."""

from datetime import datetime

from . import db


EDITABLE_FIELDS = ("first_name", "last_name", "mobile", "location", "organization")


class CoordinatorProfile(db.Model):
    """Profile for a COORDINATOR user, tied to an organization."""

    __tablename__ = "coordinator_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    first_name = db.Column(db.String(120), nullable=False)
    last_name = db.Column(db.String(120), nullable=False)
    mobile = db.Column(db.String(32), nullable=False)
    location = db.Column(db.String(255), nullable=True)
    organization = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    user = db.relationship("User", back_populates="coordinator_profile")

    def to_dict(self) -> dict:
        data = {"id": self.id, "user_id": self.user_id}
        for field in EDITABLE_FIELDS:
            data[field] = getattr(self, field)
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data
