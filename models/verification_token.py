"""Standalone email verification tokens."""

from datetime import datetime
from typing import Optional

from . import db


class VerificationToken(db.Model):
    """An identifier/token pair with an expiry, consumed on use."""

    __tablename__ = "verification_tokens"
    __table_args__ = (
        db.PrimaryKeyConstraint("identifier", "token", name="pk_verification_tokens"),
    )

    identifier = db.Column(db.String(255), nullable=False)
    token = db.Column(db.String(128), nullable=False, unique=True)
    expires = db.Column(db.DateTime, nullable=False)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return self.expires <= (now or datetime.utcnow())

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<VerificationToken {self.identifier}>"
