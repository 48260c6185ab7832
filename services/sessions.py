"""Server-side sessions backing issued access tokens."""

from __future__ import annotations

from datetime import datetime, timedelta

from flask import current_app
from flask_jwt_extended import create_access_token

from models import db
from models.session import Session
from models.user import User
from models.verification_token import VerificationToken
from utils.passwords import generate_token


def open_session(
    user: User, *, ip_address: str | None = None, user_agent: str | None = None
) -> tuple[Session, str]:
    """Create a session for ``user`` and return it with a signed access token."""

    lifetime = timedelta(hours=current_app.config.get("SESSION_LIFETIME_HOURS", 24))
    session = Session(
        session_token=generate_token(),
        user_id=user.id,
        expires=datetime.utcnow() + lifetime,
        ip_address=ip_address,
        user_agent=user_agent[:512] if user_agent else None,
    )
    db.session.add(session)
    token = create_access_token(
        identity=str(user.id),
        additional_claims={"sid": session.session_token, "role": user.role},
        expires_delta=lifetime,
    )
    return session, token


def find_live_session(session_token: str | None) -> Session | None:
    if not session_token:
        return None
    session = Session.query.filter_by(session_token=session_token).first()
    if session is None or session.is_expired():
        return None
    return session


def live_sessions_for(user: User) -> list[Session]:
    return (
        Session.query.filter(
            Session.user_id == user.id, Session.expires > datetime.utcnow()
        )
        .order_by(Session.created_at.desc())
        .all()
    )


def revoke_session(session_token: str) -> bool:
    deleted = Session.query.filter_by(session_token=session_token).delete()
    return bool(deleted)


def revoke_all_sessions(user: User) -> int:
    return Session.query.filter_by(user_id=user.id).delete()


def purge_expired_sessions(now: datetime | None = None) -> int:
    now = now or datetime.utcnow()
    return Session.query.filter(Session.expires <= now).delete()


def purge_expired_verification_tokens(now: datetime | None = None) -> int:
    now = now or datetime.utcnow()
    return VerificationToken.query.filter(VerificationToken.expires <= now).delete()
