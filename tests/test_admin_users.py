"""Tests for user administration and the audit trail."""

from __future__ import annotations

from datetime import datetime, timedelta
from io import BytesIO
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

from conftest import create_user, login
from models import db
from models.audit_log import AuditLog
from models.session import Session
from models.user import User
from models.worker_profile import WorkerProfile


def test_list_users_filters(app: Flask, client: FlaskClient, admin_headers):
    create_user(app, "w@example.com")
    create_user(app, "c@example.com", role="CLIENT", status="SUSPENDED")

    everyone = client.get("/admin/users", headers=admin_headers).get_json()
    assert [user["email"] for user in everyone] == [
        "admin@example.com",
        "w@example.com",
        "c@example.com",
    ]

    clients = client.get("/admin/users?role=client", headers=admin_headers).get_json()
    assert [user["email"] for user in clients] == ["c@example.com"]

    suspended = client.get("/admin/users?status=SUSPENDED", headers=admin_headers).get_json()
    assert [user["email"] for user in suspended] == ["c@example.com"]
    assert all("password_hash" not in user for user in everyone)


def test_change_role_records_audit(app: Flask, client: FlaskClient, admin_headers):
    user_id = create_user(app, "promote@example.com", role="CLIENT")

    response = client.patch(
        f"/admin/users/{user_id}/role", json={"role": "coordinator"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.get_json()["role"] == "COORDINATOR"
    with app.app_context():
        entry = AuditLog.query.filter_by(user_id=user_id, action="ROLE_CHANGE").one()
        assert entry.details["from"] == "CLIENT"
        assert entry.details["to"] == "COORDINATOR"


def test_admin_cannot_change_own_role(app: Flask, client: FlaskClient, admin_headers):
    with app.app_context():
        admin_id = User.query.filter_by(email="admin@example.com").one().id

    response = client.patch(
        f"/admin/users/{admin_id}/role", json={"role": "WORKER"}, headers=admin_headers
    )

    assert response.status_code == 400


def test_suspending_user_revokes_sessions(app: Flask, client: FlaskClient, admin_headers):
    user_id = create_user(app, "suspend@example.com")
    user_headers = login(client, "suspend@example.com")

    response = client.patch(
        f"/admin/users/{user_id}/status", json={"status": "SUSPENDED"}, headers=admin_headers
    )

    assert response.status_code == 200
    assert response.get_json()["status"] == "SUSPENDED"
    assert client.get("/auth/me", headers=user_headers).status_code == 401
    with app.app_context():
        assert Session.query.filter_by(user_id=user_id).count() == 0
        assert AuditLog.query.filter_by(user_id=user_id, action="STATUS_CHANGE").count() == 1

    invalid = client.patch(
        f"/admin/users/{user_id}/status", json={"status": "GONE"}, headers=admin_headers
    )
    assert invalid.status_code == 400


def test_unlock_user(app: Flask, client: FlaskClient, admin_headers):
    user_id = create_user(app, "stuck@example.com")
    with app.app_context():
        user = db.session.get(User, user_id)
        user.failed_login_attempts = 5
        user.account_locked_until = datetime.utcnow() + timedelta(minutes=15)
        db.session.commit()

    response = client.post(f"/admin/users/{user_id}/unlock", headers=admin_headers)

    assert response.status_code == 200
    assert response.get_json()["failed_login_attempts"] == 0
    assert response.get_json()["account_locked_until"] is None
    login(client, "stuck@example.com")
    with app.app_context():
        assert AuditLog.query.filter_by(user_id=user_id, action="ACCOUNT_UNLOCKED").count() == 1


def test_delete_user_keeps_audit_history(app: Flask, client: FlaskClient, admin_headers):
    user_id = create_user(app, "leaving@example.com")
    login(client, "leaving@example.com")
    client.post("/auth/login", json={"email": "leaving@example.com", "password": "bad"})

    response = client.delete(f"/admin/users/{user_id}", headers=admin_headers)

    assert response.status_code == 200
    assert response.get_json()["id"] == user_id
    with app.app_context():
        assert db.session.get(User, user_id) is None
        assert WorkerProfile.query.filter_by(user_id=user_id).count() == 0
        assert Session.query.filter_by(user_id=user_id).count() == 0

        kept = AuditLog.query.filter(
            AuditLog.action.in_(["LOGIN_SUCCESS", "LOGIN_FAILED"]),
            AuditLog.user_id.is_(None),
        ).all()
        assert sorted(entry.action for entry in kept) == ["LOGIN_FAILED", "LOGIN_SUCCESS"]

        deleted = AuditLog.query.filter_by(action="USER_DELETED").one()
        assert deleted.user_id is None
        assert deleted.details["deleted_user_id"] == user_id
        assert deleted.details["email"] == "leaving@example.com"


def test_admin_cannot_delete_self(app: Flask, client: FlaskClient, admin_headers):
    with app.app_context():
        admin_id = User.query.filter_by(email="admin@example.com").one().id

    assert client.delete(f"/admin/users/{admin_id}", headers=admin_headers).status_code == 400
    assert client.delete("/admin/users/9999", headers=admin_headers).status_code == 404


def test_audit_log_listing(app: Flask, client: FlaskClient, admin_headers):
    user_id = create_user(app, "tracked@example.com")
    login(client, "tracked@example.com")
    client.post("/auth/login", json={"email": "tracked@example.com", "password": "bad"})

    response = client.get(f"/admin/audit-logs?user_id={user_id}", headers=admin_headers)

    assert response.status_code == 200
    entries = response.get_json()
    assert [entry["action"] for entry in entries] == ["LOGIN_FAILED", "LOGIN_SUCCESS"]
    assert entries[0]["metadata"] == {"failed_attempts": 1}
    assert entries[0]["ip_address"] == "127.0.0.1"

    failed = client.get(
        "/admin/audit-logs?action=login_failed&limit=1", headers=admin_headers
    ).get_json()
    assert len(failed) == 1
    assert failed[0]["action"] == "LOGIN_FAILED"

    assert client.get(
        "/admin/audit-logs?action=NOPE", headers=admin_headers
    ).status_code == 400


def test_user_admin_requires_admin(app: Flask, client: FlaskClient):
    user_id = create_user(app, "plain@example.com", role="CLIENT")
    headers = login(client, "plain@example.com")

    assert client.get("/admin/users", headers=headers).status_code == 403
    assert client.delete(f"/admin/users/{user_id}", headers=headers).status_code == 403
    assert client.get("/admin/audit-logs", headers=headers).status_code == 403


@pytest.mark.parametrize("limit", ["-1", "0"])
def test_audit_log_limit_must_be_positive(app: Flask, client: FlaskClient, admin_headers, limit):
    response = client.get(f"/admin/audit-logs?limit={limit}", headers=admin_headers)

    assert response.status_code == 400


def test_audit_log_limit_is_capped(app: Flask, client: FlaskClient, admin_headers):
    with app.app_context():
        db.session.add_all(AuditLog(action="LOGOUT") for _ in range(505))
        db.session.commit()

    response = client.get("/admin/audit-logs?limit=1000", headers=admin_headers)

    assert len(response.get_json()) == 500


def test_delete_user_removes_stored_documents(app: Flask, client: FlaskClient, admin_headers):
    user_id = create_user(app, "docs@example.com")
    headers = login(client, "docs@example.com")
    upload = client.post(
        "/verify/requirements",
        data={"requirement_type": "police_check", "document": (BytesIO(b"pdf"), "p.pdf")},
        headers=headers,
        content_type="multipart/form-data",
    )
    stored = Path(app.config["UPLOAD_DIR"]) / upload.get_json()["requirement"]["document_url"]
    assert stored.exists()

    response = client.delete(f"/admin/users/{user_id}", headers=admin_headers)

    assert response.status_code == 200
    assert not stored.exists()
