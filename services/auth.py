"""Registration, login lockout, password and email-verification flows."""

from __future__ import annotations

from datetime import datetime

from flask import current_app
from sqlalchemy import func
from werkzeug.exceptions import BadRequest, Conflict, Forbidden, Unauthorized

from models import db
from models.account import Account
from models.client_profile import ClientProfile
from models.coordinator_profile import CoordinatorProfile
from models.enums import SELF_SERVICE_ROLES
from models.user import User
from models.verification_token import VerificationToken
from models.worker_profile import WorkerProfile
from services import audit, sessions
from utils.passwords import generate_expiring_token, validate_password
from utils.request_validation import parse_text

INVALID_CREDENTIALS = "Invalid email or password."


def normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""

    return parse_text(raw_email, "email").lower()


def _password(value: object, field: str = "password") -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise BadRequest(f"{field} must be a string.")
    return value


def find_user_by_email(email: str) -> User | None:
    return User.query.filter(func.lower(User.email) == normalize_email(email)).first()


def _build_profile(role: str, payload: dict):
    first_name = parse_text(payload.get("first_name"), "first_name")
    last_name = parse_text(payload.get("last_name"), "last_name")
    mobile = parse_text(payload.get("mobile"), "mobile")
    if not first_name or not last_name or not mobile:
        raise BadRequest("first_name, last_name and mobile are required.")

    location = parse_text(payload.get("location"), "location") or None
    if role == "WORKER":
        return WorkerProfile(
            first_name=first_name,
            last_name=last_name,
            mobile=mobile,
            location=location,
            languages=[],
            services=[],
            support_worker_categories=[],
        )
    if role == "CLIENT":
        return ClientProfile(
            first_name=first_name, last_name=last_name, mobile=mobile, location=location
        )
    return CoordinatorProfile(
        first_name=first_name,
        last_name=last_name,
        mobile=mobile,
        location=location,
        organization=parse_text(payload.get("organization"), "organization") or None,
    )


def register_user(payload: dict) -> User:
    """Create a user together with the profile for their role."""

    email = normalize_email(payload.get("email"))
    password = _password(payload.get("password"))
    role = parse_text(payload.get("role"), "role").upper() or "WORKER"

    if not email or not password:
        raise BadRequest("Email and password are required.")
    if role not in SELF_SERVICE_ROLES:
        raise BadRequest(
            "Role must be one of: {}.".format(", ".join(SELF_SERVICE_ROLES))
        )
    validate_password(password)

    if find_user_by_email(email) is not None:
        raise Conflict("A user with that email already exists.")

    require_verification = current_app.config.get("REQUIRE_EMAIL_VERIFICATION", False)
    user = User(
        email=email,
        role=role,
        status="PENDING_VERIFICATION" if require_verification else "ACTIVE",
    )
    user.set_password(password)

    profile = _build_profile(role, payload)
    if role == "WORKER":
        user.worker_profile = profile
    elif role == "CLIENT":
        user.client_profile = profile
    else:
        user.coordinator_profile = profile

    db.session.add(user)
    db.session.flush()
    audit.record_event(
        "PROFILE_UPDATE",
        user_id=user.id,
        metadata={"action": "REGISTERED", "role": role},
    )
    db.session.commit()
    current_app.logger.info("Registered %s user %s", role, user.id)
    if user.status == "PENDING_VERIFICATION":
        issue_email_verification(user)
    return user


def authenticate(
    email: str | None,
    password: str | None,
    *,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> tuple[User, str]:
    """Check credentials, apply lockout rules and open a session.

    Returns the user and a signed access token.
    """

    email = normalize_email(email)
    password = _password(password)
    if not email or not password:
        raise BadRequest("Email and password are required.")

    user = find_user_by_email(email)
    if user is None or not user.password_hash:
        raise Unauthorized(INVALID_CREDENTIALS)

    if user.is_locked():
        raise Forbidden("Account is temporarily locked. Please try again later.")

    if not user.check_password(password):
        config = current_app.config
        locked = user.record_failed_login(
            config.get("MAX_FAILED_LOGIN_ATTEMPTS", 5),
            config.get("ACCOUNT_LOCK_MINUTES", 15),
        )
        audit.record_event(
            "LOGIN_FAILED",
            user_id=user.id,
            metadata={"failed_attempts": user.failed_login_attempts},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        if locked:
            audit.record_event(
                "ACCOUNT_LOCKED",
                user_id=user.id,
                metadata={"locked_until": user.account_locked_until.isoformat()},
                ip_address=ip_address,
                user_agent=user_agent,
            )
            current_app.logger.warning(
                "Locked user %s after %s failed logins",
                user.id,
                user.failed_login_attempts,
            )
        db.session.commit()
        raise Unauthorized(INVALID_CREDENTIALS)

    if user.status != "ACTIVE":
        raise Forbidden(f"Account is {user.status.lower()}.")

    user.record_successful_login(ip_address)
    _, token = sessions.open_session(
        user, ip_address=ip_address, user_agent=user_agent
    )
    audit.record_event(
        "LOGIN_SUCCESS", user_id=user.id, ip_address=ip_address, user_agent=user_agent
    )
    db.session.commit()
    return user, token


def logout(user: User, session_token: str) -> None:
    sessions.revoke_session(session_token)
    audit.record_event("LOGOUT", user_id=user.id)
    db.session.commit()


def request_password_reset(email: str | None) -> str | None:
    """Issue a reset token for a known email. Unknown emails are ignored."""

    user = find_user_by_email(email)
    if user is None:
        current_app.logger.info("Password reset requested for unknown email")
        return None

    hours = current_app.config.get("PASSWORD_RESET_EXPIRY_HOURS", 1)
    token, expires = generate_expiring_token(hours)
    user.reset_password_token = token
    user.reset_password_expires = expires
    audit.record_event(
        "PASSWORD_RESET_REQUEST", user_id=user.id, metadata={"email": user.email}
    )
    db.session.commit()
    # No mailer is configured; the caller decides how the token reaches the user.
    current_app.logger.info("Password reset token issued for user %s", user.id)
    return token


def reset_password(token: str | None, new_password: str | None) -> User:
    token = parse_text(token, "token")
    new_password = _password(new_password)
    if not token or not new_password:
        raise BadRequest("Token and password are required.")
    validate_password(new_password)

    user = User.query.filter(
        User.reset_password_token == token,
        User.reset_password_expires > datetime.utcnow(),
    ).first()
    if user is None:
        raise BadRequest(
            "Invalid or expired reset token. Please request a new password reset."
        )

    user.set_password(new_password)
    user.reset_password_token = None
    user.reset_password_expires = None
    user.clear_lockout()
    sessions.revoke_all_sessions(user)
    audit.record_event(
        "PASSWORD_RESET_SUCCESS",
        user_id=user.id,
        metadata={"reset_method": "email_link"},
    )
    db.session.commit()
    return user


def change_password(user: User, current_password: str | None, new_password: str | None) -> None:
    current_password = _password(current_password, "current_password")
    new_password = _password(new_password, "new_password")
    if not current_password or not new_password:
        raise BadRequest("current_password and new_password are required.")
    if not user.check_password(current_password):
        raise Unauthorized("Current password is incorrect.")
    validate_password(new_password)

    user.set_password(new_password)
    audit.record_event("PASSWORD_CHANGE", user_id=user.id)
    db.session.commit()


def issue_email_verification(user: User) -> VerificationToken:
    """Replace any outstanding token for the user's email with a fresh one."""

    VerificationToken.query.filter_by(identifier=user.email).delete()
    hours = current_app.config.get("EMAIL_VERIFICATION_EXPIRY_HOURS", 24)
    token, expires = generate_expiring_token(hours)
    record = VerificationToken(identifier=user.email, token=token, expires=expires)
    db.session.add(record)
    db.session.commit()
    return record


def confirm_email_verification(identifier: str | None, token: str | None) -> User:
    identifier = normalize_email(identifier)
    token = parse_text(token, "token")
    if not identifier or not token:
        raise BadRequest("identifier and token are required.")

    record = VerificationToken.query.filter_by(
        identifier=identifier, token=token
    ).first()
    if record is None:
        raise BadRequest("Invalid verification token.")

    db.session.delete(record)
    if record.is_expired():
        db.session.commit()
        raise BadRequest("Verification token has expired.")

    user = find_user_by_email(identifier)
    if user is None:
        db.session.commit()
        raise BadRequest("Invalid verification token.")

    user.mark_email_verified()
    audit.record_event("EMAIL_VERIFIED", user_id=user.id)
    db.session.commit()
    return user


def link_account(user: User, payload: dict) -> Account:
    provider = parse_text(payload.get("provider"), "provider").lower()
    provider_account_id = payload.get("provider_account_id")
    if isinstance(provider_account_id, int) and not isinstance(provider_account_id, bool):
        provider_account_id = str(provider_account_id)
    provider_account_id = parse_text(provider_account_id, "provider_account_id")
    if not provider or not provider_account_id:
        raise BadRequest("provider and provider_account_id are required.")

    existing = Account.query.filter_by(
        provider=provider, provider_account_id=provider_account_id
    ).first()
    if existing is not None:
        raise Conflict("That provider account is already linked.")

    expires_at = payload.get("expires_at")
    if expires_at is not None and (
        isinstance(expires_at, bool) or not isinstance(expires_at, int)
    ):
        raise BadRequest("expires_at must be an integer timestamp.")

    account = Account(
        user_id=user.id,
        type=parse_text(payload.get("type"), "type") or "oauth",
        provider=provider,
        provider_account_id=provider_account_id,
        refresh_token=payload.get("refresh_token"),
        access_token=payload.get("access_token"),
        expires_at=expires_at,
        token_type=payload.get("token_type"),
        scope=payload.get("scope"),
        id_token=payload.get("id_token"),
        session_state=payload.get("session_state"),
    )
    db.session.add(account)
    audit.record_event(
        "ACCOUNT_LINKED", user_id=user.id, metadata={"provider": provider}
    )
    db.session.commit()
    return account


def unlink_account(user: User, account: Account) -> None:
    provider = account.provider
    db.session.delete(account)
    audit.record_event(
        "ACCOUNT_UNLINKED", user_id=user.id, metadata={"provider": provider}
    )
    db.session.commit()
