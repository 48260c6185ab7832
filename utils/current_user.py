"""Resolve the authenticated user behind a JWT-protected request."""

from __future__ import annotations

from flask_jwt_extended import get_jwt, get_jwt_identity
from werkzeug.exceptions import Forbidden, NotFound

from models import db
from models.user import User


def get_current_user() -> User | None:
    try:
        identity = get_jwt_identity()
    except RuntimeError:
        return None
    if identity is None:
        return None
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def current_session_token() -> str | None:
    return get_jwt().get("sid")


def require_user() -> User:
    user = get_current_user()
    if user is None:
        raise NotFound("User not found.")
    if user.status != "ACTIVE":
        raise Forbidden(f"Account is {user.status.lower()}.")
    return user


def require_role(*roles: str) -> User:
    user = require_user()
    if user.role not in roles:
        raise Forbidden("{} privileges required.".format(" or ".join(roles).title()))
    return user


def require_admin() -> User:
    user = require_user()
    if user.role != "ADMIN":
        raise Forbidden("Admin privileges required.")
    return user
