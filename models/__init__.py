"""Database initialization and model exports."""

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .account import Account  # noqa: E402,F401
from .session import Session  # noqa: E402,F401
from .verification_token import VerificationToken  # noqa: E402,F401
from .worker_profile import WorkerProfile  # noqa: E402,F401
from .verification_requirement import VerificationRequirement  # noqa: E402,F401
from .client_profile import ClientProfile  # noqa: E402,F401
from .coordinator_profile import CoordinatorProfile  # noqa: E402,F401
from .audit_log import AuditLog  # noqa: E402,F401

__all__ = [
    "db",
    "User",
    "Account",
    "Session",
    "VerificationToken",
    "WorkerProfile",
    "VerificationRequirement",
    "ClientProfile",
    "CoordinatorProfile",
    "AuditLog",
]
