"""Admin review of individual verification requirements."""

from __future__ import annotations

from datetime import datetime, timedelta
from io import BytesIO

import pytest
from flask import Flask
from flask.testing import FlaskClient

from conftest import create_user, login
from models import db
from models.user import User
from models.verification_requirement import VerificationRequirement
from models.worker_profile import WorkerProfile
from services import verification


def _seed_requirement(
    app: Flask, email: str = "worker@example.com", status: str = "SUBMITTED", **fields
) -> tuple[int, int]:
    user_id = create_user(app, email)
    with app.app_context():
        worker = db.session.get(User, user_id).worker_profile
        requirement = VerificationRequirement(
            requirement_type=fields.pop("requirement_type", "police_check"),
            requirement_name=fields.pop("requirement_name", "Police Check"),
            status=status,
            **fields,
        )
        worker.verification_requirements.append(requirement)
        db.session.commit()
        return worker.id, requirement.id


def _url(worker_id: int, requirement_id: int, action: str) -> str:
    return f"/admin/workers/{worker_id}/requirements/{requirement_id}/{action}"


def test_approve_requirement_is_idempotent(app: Flask, client: FlaskClient, admin_headers):
    worker_id, requirement_id = _seed_requirement(app)

    first = client.post(_url(worker_id, requirement_id, "approve"), headers=admin_headers)
    assert first.status_code == 200
    assert first.get_json()["message"] == "Document approved successfully."
    assert first.get_json()["requirement"]["status"] == "APPROVED"
    assert first.get_json()["requirement"]["reviewed_by"] == "admin@example.com"

    second = client.post(_url(worker_id, requirement_id, "approve"), headers=admin_headers)
    assert second.status_code == 200
    assert second.get_json()["message"] == "Document is already approved."


def test_pending_requirement_cannot_be_reviewed(app: Flask, client: FlaskClient, admin_headers):
    worker_id, requirement_id = _seed_requirement(app, status="PENDING")

    approve = client.post(_url(worker_id, requirement_id, "approve"), headers=admin_headers)
    reject = client.post(
        _url(worker_id, requirement_id, "reject"),
        json={"reason": "Missing"},
        headers=admin_headers,
    )

    assert approve.status_code == 400
    assert reject.status_code == 400


def test_reject_requirement_needs_reason(app: Flask, client: FlaskClient, admin_headers):
    worker_id, requirement_id = _seed_requirement(app)

    missing = client.post(
        _url(worker_id, requirement_id, "reject"), json={}, headers=admin_headers
    )
    assert missing.status_code == 400

    response = client.post(
        _url(worker_id, requirement_id, "reject"),
        json={"rejection_reason": "Document is cropped"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    requirement = response.get_json()["requirement"]
    assert requirement["status"] == "REJECTED"
    assert requirement["rejection_reason"] == "Document is cropped"
    assert requirement["approved_at"] is None


def test_requirement_must_belong_to_worker(app: Flask, client: FlaskClient, admin_headers):
    _, requirement_id = _seed_requirement(app, "one@example.com")
    other_worker_id, _ = _seed_requirement(app, "two@example.com")

    response = client.post(
        _url(other_worker_id, requirement_id, "approve"), headers=admin_headers
    )

    assert response.status_code == 404
    assert response.get_json()["detail"] == "Document not found."


def test_reset_requirement_appends_note(app: Flask, client: FlaskClient, admin_headers):
    worker_id, requirement_id = _seed_requirement(app, status="APPROVED", notes="Checked")

    response = client.post(_url(worker_id, requirement_id, "reset"), headers=admin_headers)

    assert response.status_code == 200
    requirement = response.get_json()["requirement"]
    assert requirement["status"] == "SUBMITTED"
    assert requirement["notes"].startswith("Checked\n[")
    assert requirement["notes"].endswith("Reset to review by admin@example.com")

    again = client.post(_url(worker_id, requirement_id, "reset"), headers=admin_headers)
    assert again.status_code == 400


def test_update_requirement_expiry(app: Flask, client: FlaskClient, admin_headers):
    worker_id, requirement_id = _seed_requirement(app)
    url = _url(worker_id, requirement_id, "expiry")

    response = client.put(url, json={"expires_at": "2031-06-30"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.get_json()["requirement"]["expires_at"] == "2031-06-30T00:00:00"

    cleared = client.put(url, json={"expires_at": None}, headers=admin_headers)
    assert cleared.get_json()["requirement"]["expires_at"] is None

    assert client.put(url, json={}, headers=admin_headers).status_code == 400
    assert client.put(
        url, json={"expires_at": "next week"}, headers=admin_headers
    ).status_code == 400


def test_expire_requirements_only_touches_lapsed_approvals(
    app: Flask, client: FlaskClient, admin_headers
):
    past = datetime.utcnow() - timedelta(days=1)
    future = datetime.utcnow() + timedelta(days=30)
    _, lapsed_id = _seed_requirement(app, "a@example.com", status="APPROVED", expires_at=past)
    _, current_id = _seed_requirement(app, "b@example.com", status="APPROVED", expires_at=future)
    _, submitted_id = _seed_requirement(app, "c@example.com", expires_at=past)

    response = client.post("/admin/requirements/expire", headers=admin_headers)

    assert response.get_json() == {"expired": 1}
    with app.app_context():
        assert db.session.get(VerificationRequirement, lapsed_id).status == "EXPIRED"
        assert db.session.get(VerificationRequirement, current_id).status == "APPROVED"
        assert db.session.get(VerificationRequirement, submitted_id).status == "SUBMITTED"


def test_pending_queue_is_oldest_first(app: Flask, client: FlaskClient, admin_headers):
    now = datetime.utcnow()
    ids = []
    for index, email in enumerate(["late@example.com", "early@example.com"]):
        user_id = create_user(app, email)
        with app.app_context():
            worker = db.session.get(User, user_id).worker_profile
            worker.mark_submitted(now=now - timedelta(hours=index))
            db.session.commit()
            ids.append(worker.id)
    create_user(app, "idle@example.com")

    response = client.get("/admin/workers/pending", headers=admin_headers)

    assert response.status_code == 200
    assert [item["id"] for item in response.get_json()] == list(reversed(ids))

    filtered = client.get("/admin/workers?status=not_started", headers=admin_headers)
    assert len(filtered.get_json()) == 1
    assert client.get("/admin/workers?status=bogus", headers=admin_headers).status_code == 400


def test_verification_statistics(app: Flask, client: FlaskClient, admin_headers):
    for email in ("w1@example.com", "w2@example.com", "w3@example.com"):
        create_user(app, email)
    with app.app_context():
        worker = WorkerProfile.query.order_by(WorkerProfile.id).first()
        worker.mark_approved()
        db.session.commit()

    stats = client.get("/admin/verification/statistics", headers=admin_headers).get_json()

    assert stats["not_started"] == 2
    assert stats["approved"] == 1
    assert stats["pending_review"] == 0
    assert stats["total"] == 3


def test_worker_detail_and_missing_worker(app: Flask, client: FlaskClient, admin_headers):
    worker_id, _ = _seed_requirement(app)

    detail = client.get(f"/admin/workers/{worker_id}", headers=admin_headers).get_json()
    assert detail["user"]["email"] == "worker@example.com"
    assert len(detail["verification_requirements"]) == 1

    missing = client.get("/admin/workers/9999", headers=admin_headers)
    assert missing.status_code == 404


def test_admin_downloads_uploaded_document(app: Flask, client: FlaskClient, admin_headers):
    create_user(app, "uploader@example.com")
    worker_headers = login(client, "uploader@example.com")
    upload = client.post(
        "/verify/requirements",
        data={"requirement_type": "id", "document": (BytesIO(b"scan"), "id.png")},
        headers=worker_headers,
        content_type="multipart/form-data",
    )
    requirement_id = upload.get_json()["requirement"]["id"]

    response = client.get(
        f"/admin/requirements/{requirement_id}/document", headers=admin_headers
    )

    assert response.status_code == 200
    assert response.data == b"scan"
    assert "attachment" in response.headers["Content-Disposition"]
    response.close()


def test_download_without_document_is_not_found(app: Flask, client: FlaskClient, admin_headers):
    _, requirement_id = _seed_requirement(app, status="PENDING")

    response = client.get(
        f"/admin/requirements/{requirement_id}/document", headers=admin_headers
    )

    assert response.status_code == 404


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/admin/workers/pending"),
        ("get", "/admin/verification/statistics"),
        ("post", "/admin/requirements/expire"),
    ],
)
def test_review_endpoints_require_admin(app: Flask, client: FlaskClient, method, path):
    create_user(app, "coord@example.com", role="COORDINATOR")
    headers = login(client, "coord@example.com")

    response = getattr(client, method)(path, headers=headers)

    assert response.status_code == 403


def test_expire_requirements_service_uses_reference_time(app: Flask):
    _, requirement_id = _seed_requirement(
        app, status="APPROVED", expires_at=datetime(2030, 1, 1)
    )

    with app.app_context():
        assert verification.expire_requirements(now=datetime(2029, 12, 31)) == 0
        assert verification.expire_requirements(now=datetime(2030, 1, 2)) == 1
        assert db.session.get(VerificationRequirement, requirement_id).status == "EXPIRED"


def test_publish_toggle(app: Flask, client: FlaskClient, admin_headers):
    worker_id, _ = _seed_requirement(app)
    url = f"/admin/workers/{worker_id}/publish"

    shown = client.post(url, json={"is_published": True}, headers=admin_headers)
    assert shown.status_code == 200
    assert shown.get_json()["is_published"] is True

    hidden = client.post(url, json={"is_published": False}, headers=admin_headers)
    assert hidden.get_json()["is_published"] is False
    with app.app_context():
        assert db.session.get(WorkerProfile, worker_id).is_published is False


@pytest.mark.parametrize("body", [{"is_published": "true"}, {"is_published": 1}, {}])
def test_publish_requires_boolean(app: Flask, client: FlaskClient, admin_headers, body):
    worker_id, _ = _seed_requirement(app)

    response = client.post(
        f"/admin/workers/{worker_id}/publish", json=body, headers=admin_headers
    )

    assert response.status_code == 400
    assert client.post(
        "/admin/workers/9999/publish", json={"is_published": True}, headers=admin_headers
    ).status_code == 404
