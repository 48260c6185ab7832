"""User model definition."""

from datetime import datetime, timedelta
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from . import db
from .enums import ACCOUNT_STATUSES, USER_ROLES


class User(db.Model):
    """Represents a platform identity of any role."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=True)
    role = db.Column(
        db.Enum(*USER_ROLES, name="user_role"),
        nullable=False,
        default="WORKER",
        server_default=db.text("'WORKER'"),
    )
    status = db.Column(
        db.Enum(*ACCOUNT_STATUSES, name="account_status"),
        nullable=False,
        default="ACTIVE",
        server_default=db.text("'ACTIVE'"),
    )
    email_verified = db.Column(db.DateTime, nullable=True)

    reset_password_token = db.Column(db.String(128), unique=True, nullable=True)
    reset_password_expires = db.Column(db.DateTime, nullable=True)
    failed_login_attempts = db.Column(
        db.Integer, nullable=False, default=0, server_default=db.text("0")
    )
    account_locked_until = db.Column(db.DateTime, nullable=True)
    last_login_at = db.Column(db.DateTime, nullable=True)
    last_login_ip = db.Column(db.String(64), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(
        db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    worker_profile = db.relationship(
        "WorkerProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    client_profile = db.relationship(
        "ClientProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    coordinator_profile = db.relationship(
        "CoordinatorProfile",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    accounts = db.relationship(
        "Account",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    sessions = db.relationship(
        "Session",
        back_populates="user",
        cascade="all, delete-orphan",
    )
    # No delete cascade: audit rows outlive the user and have user_id nulled.
    audit_logs = db.relationship("AuditLog", back_populates="user", lazy="dynamic")

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def profile(self):
        """Return the role-specific profile, if any."""

        if self.role == "WORKER":
            return self.worker_profile
        if self.role == "CLIENT":
            return self.client_profile
        if self.role == "COORDINATOR":
            return self.coordinator_profile
        return None

    def is_locked(self, now: Optional[datetime] = None) -> bool:
        """Return True while a temporary lockout is in force."""

        now = now or datetime.utcnow()
        return self.account_locked_until is not None and self.account_locked_until > now

    def record_failed_login(
        self, max_attempts: int, lock_minutes: int, now: Optional[datetime] = None
    ) -> bool:
        """Count a failed attempt. Returns True if this attempt locked the account."""

        now = now or datetime.utcnow()
        if self.account_locked_until is not None and self.account_locked_until <= now:
            # A lapsed lock starts a fresh window.
            self.clear_lockout()
        self.failed_login_attempts = (self.failed_login_attempts or 0) + 1
        if self.failed_login_attempts >= max_attempts:
            self.account_locked_until = now + timedelta(minutes=lock_minutes)
            return True
        return False

    def record_successful_login(
        self, ip_address: Optional[str] = None, now: Optional[datetime] = None
    ) -> None:
        self.failed_login_attempts = 0
        self.account_locked_until = None
        self.last_login_at = now or datetime.utcnow()
        self.last_login_ip = ip_address

    def clear_lockout(self) -> None:
        self.failed_login_attempts = 0
        self.account_locked_until = None

    def mark_email_verified(self, now: Optional[datetime] = None) -> None:
        """Stamp the email as verified and activate a pending account."""

        self.email_verified = now or datetime.utcnow()
        if self.status == "PENDING_VERIFICATION":
            self.status = "ACTIVE"

    def summary(self) -> dict:
        return {"id": self.id, "email": self.email, "role": self.role}

    def to_dict(self) -> dict:
        """Serialize the user without credentials or tokens."""

        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "email_verified": (
                self.email_verified.isoformat() if self.email_verified else None
            ),
            "failed_login_attempts": self.failed_login_attempts,
            "account_locked_until": (
                self.account_locked_until.isoformat()
                if self.account_locked_until
                else None
            ),
            "last_login_at": (
                self.last_login_at.isoformat() if self.last_login_at else None
            ),
            "last_login_ip": self.last_login_ip,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"
