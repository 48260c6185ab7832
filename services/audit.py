"""Audit trail helpers."""

from __future__ import annotations

from typing import Any

from flask import has_request_context, request

from models import db
from models.audit_log import AuditLog


def _request_origin() -> tuple[str | None, str | None]:
    if not has_request_context():
        return None, None
    user_agent = request.headers.get("User-Agent")
    return request.remote_addr, user_agent[:512] if user_agent else None


def record_event(
    action: str,
    *,
    user_id: int | None = None,
    metadata: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuditLog:
    """Stage an audit entry in the current session.

    The entry is committed together with the change it describes; request
    origin is filled in from the active request when not given.
    """

    default_ip, default_agent = _request_origin()
    entry = AuditLog(
        user_id=user_id,
        action=action,
        ip_address=ip_address or default_ip,
        user_agent=user_agent or default_agent,
        details=metadata or {},
    )
    db.session.add(entry)
    return entry


def list_events(
    *, user_id: int | None = None, action: str | None = None, limit: int = 100
) -> list[AuditLog]:
    query = AuditLog.query
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if action:
        query = query.filter(AuditLog.action == action)
    return (
        query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        .limit(limit)
        .all()
    )
