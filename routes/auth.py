"""Authentication blueprint: registration, login, sessions and credentials."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required
from werkzeug.exceptions import NotFound

from extensions import auth_limit, limiter
from models import db
from models.account import Account
from models.session import Session
from services import auth as auth_service
from services import sessions as session_service
from utils.current_user import current_session_token, require_user
from utils.request_validation import parse_json_request

auth_bp = Blueprint("auth", __name__)


def _client_origin() -> tuple[str | None, str | None]:
    return request.remote_addr, request.headers.get("User-Agent")


def _user_payload(user) -> dict:
    profile = user.profile
    return {
        **user.to_dict(),
        "profile": profile.to_dict() if profile is not None else None,
    }


@auth_bp.route("/register", methods=["POST"])
@limiter.limit(auth_limit)
def register() -> tuple:
    """Register a user and their role profile."""

    payload = parse_json_request(request)
    user = auth_service.register_user(payload)
    return (
        jsonify(
            {
                "message": "User registered successfully.",
                "user": {**user.summary(), "status": user.status},
            }
        ),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
@limiter.limit(auth_limit)
def login() -> tuple:
    """Authenticate a user and return a session-bound access token."""

    payload = parse_json_request(request)
    ip_address, user_agent = _client_origin()
    user, token = auth_service.authenticate(
        payload.get("email"),
        payload.get("password"),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return (
        jsonify({"access_token": token, "user": user.summary()}),
        HTTPStatus.OK,
    )


@auth_bp.route("/logout", methods=["POST"])
@jwt_required()
def logout():
    user = require_user()
    auth_service.logout(user, current_session_token())
    return jsonify({"message": "Logged out."})


@auth_bp.route("/me", methods=["GET"])
@jwt_required()
def me():
    """Return the authenticated user and their profile."""

    return jsonify(_user_payload(require_user()))


@auth_bp.route("/sessions", methods=["GET"])
@jwt_required()
def list_sessions():
    user = require_user()
    current = current_session_token()
    return jsonify(
        [
            {**session.to_dict(), "current": session.session_token == current}
            for session in session_service.live_sessions_for(user)
        ]
    )


@auth_bp.route("/sessions/<int:session_id>", methods=["DELETE"])
@jwt_required()
def revoke_session(session_id: int):
    user = require_user()
    session = db.session.get(Session, session_id)
    if session is None or session.user_id != user.id:
        raise NotFound("Session not found.")
    session_service.revoke_session(session.session_token)
    db.session.commit()
    return jsonify({"message": "Session revoked."})


@auth_bp.route("/forgot-password", methods=["POST"])
@limiter.limit(auth_limit)
def forgot_password():
    """Start a password reset without revealing whether the email exists."""

    payload = parse_json_request(request, required_keys=["email"])
    auth_service.request_password_reset(payload.get("email"))
    return jsonify(
        {
            "message": (
                "If an account exists with this email, "
                "you will receive a password reset link."
            )
        }
    )


@auth_bp.route("/reset-password", methods=["POST"])
@limiter.limit(auth_limit)
def reset_password():
    payload = parse_json_request(request)
    auth_service.reset_password(payload.get("token"), payload.get("password"))
    return jsonify(
        {
            "message": (
                "Password reset successfully. "
                "You can now log in with your new password."
            )
        }
    )


@auth_bp.route("/change-password", methods=["POST"])
@jwt_required()
def change_password():
    user = require_user()
    payload = parse_json_request(request)
    auth_service.change_password(
        user, payload.get("current_password"), payload.get("new_password")
    )
    return jsonify({"message": "Password changed."})


@auth_bp.route("/verify-email/request", methods=["POST"])
@limiter.limit(auth_limit)
def request_email_verification():
    """Issue an email verification token without revealing whether the email exists."""

    payload = parse_json_request(request, required_keys=["email"])
    user = auth_service.find_user_by_email(payload.get("email"))
    if user is not None and user.email_verified is None:
        auth_service.issue_email_verification(user)
    return jsonify(
        {"message": "If the email needs verification, a token has been issued."}
    )


@auth_bp.route("/verify-email/confirm", methods=["POST"])
@limiter.limit(auth_limit)
def confirm_email_verification():
    payload = parse_json_request(request, required_keys=["identifier", "token"])
    user = auth_service.confirm_email_verification(
        payload.get("identifier"), payload.get("token")
    )
    return jsonify({"message": "Email verified.", "user": user.to_dict()})


@auth_bp.route("/accounts", methods=["GET"])
@jwt_required()
def list_accounts():
    user = require_user()
    return jsonify([account.to_dict() for account in user.accounts])


@auth_bp.route("/accounts", methods=["POST"])
@jwt_required()
def link_account():
    user = require_user()
    payload = parse_json_request(request)
    account = auth_service.link_account(user, payload)
    return jsonify(account.to_dict()), HTTPStatus.CREATED


@auth_bp.route("/accounts/<int:account_id>", methods=["DELETE"])
@jwt_required()
def unlink_account(account_id: int):
    user = require_user()
    account = db.session.get(Account, account_id)
    if account is None or account.user_id != user.id:
        raise NotFound("Account not found.")
    auth_service.unlink_account(user, account)
    return jsonify({"message": "Account unlinked."})
