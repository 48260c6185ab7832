"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.client_profile import ClientProfile  # noqa: E402
from models.coordinator_profile import CoordinatorProfile  # noqa: E402
from models.user import User  # noqa: E402
from models.worker_profile import WorkerProfile  # noqa: E402

DEFAULT_PASSWORD = "Passw0rd!"


class _BaseTestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length"
    RATE_LIMIT = "1000 per minute"
    AUTH_RATE_LIMIT = "1000 per minute"
    REQUIRE_EMAIL_VERIFICATION = False


def build_app(tmp_path: Path, **overrides) -> Flask:
    """Create an app whose config is the test config plus ``overrides``."""

    upload_dir = tmp_path / "uploads"

    class TestConfig(_BaseTestConfig):
        UPLOAD_DIR = str(upload_dir)

    for key, value in overrides.items():
        setattr(TestConfig, key, value)

    application = create_app(TestConfig)
    with application.app_context():
        db.create_all()
    return application


@pytest.fixture()
def app(tmp_path) -> Flask:
    """Create a Flask application instance for tests."""

    application = build_app(tmp_path)

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


def create_user(
    app: Flask,
    email: str,
    role: str = "WORKER",
    *,
    password: str = DEFAULT_PASSWORD,
    status: str = "ACTIVE",
) -> int:
    """Persist a user with the profile matching ``role`` and return its id."""

    with app.app_context():
        user = User(email=email, role=role, status=status)
        user.set_password(password)
        profile_fields = {"first_name": "Test", "last_name": "User", "mobile": "0400000000"}
        if role == "WORKER":
            user.worker_profile = WorkerProfile(
                languages=[], services=[], support_worker_categories=[], **profile_fields
            )
        elif role == "CLIENT":
            user.client_profile = ClientProfile(**profile_fields)
        elif role == "COORDINATOR":
            user.coordinator_profile = CoordinatorProfile(
                organization="Care Co", **profile_fields
            )
        db.session.add(user)
        db.session.commit()
        return user.id


def login(client: FlaskClient, email: str, password: str = DEFAULT_PASSWORD) -> dict:
    """Log in and return Authorization headers for the new session."""

    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.get_json()
    return {"Authorization": f"Bearer {response.get_json()['access_token']}"}


@pytest.fixture()
def admin_headers(app: Flask, client: FlaskClient) -> dict:
    create_user(app, "admin@example.com", role="ADMIN")
    return login(client, "admin@example.com")
