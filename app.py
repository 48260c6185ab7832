"""Application factory."""

import os
import uuid

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from config import Config
from extensions import jwt, limiter, migrate
from models import db
from routes.admin import admin_bp
from routes.auth import auth_bp
from routes.profiles import profiles_bp
from routes.verify import verify_bp
from services.sessions import find_live_session


def _request_id() -> str:
    if "request_id" not in g:
        g.request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    return g.request_id


def error_response(status_code: int, error: str, detail: str):
    """Build the JSON error body every failure path returns."""

    request_id = _request_id()
    response = jsonify({"error": error, "detail": detail, "request_id": request_id})
    response.status_code = status_code
    response.headers.setdefault("X-Request-ID", request_id)
    return response


@jwt.token_in_blocklist_loader
def _session_revoked(jwt_header, jwt_payload) -> bool:
    """Access tokens are only honoured while their session row is live."""

    return find_live_session(jwt_payload.get("sid")) is None


@jwt.revoked_token_loader
def _revoked_token(jwt_header, jwt_payload):
    return error_response(401, "Unauthorized", "Session has ended. Please log in again.")


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return error_response(401, "Unauthorized", "Token has expired.")


@jwt.unauthorized_loader
def _missing_token(reason: str):
    return error_response(401, "Unauthorized", reason)


@jwt.invalid_token_loader
def _invalid_token(reason: str):
    return error_response(422, "Unprocessable Entity", reason)


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}},
        supports_credentials=True,
    )

    # Each app instance gets its own limiter buckets unless a prefix is configured.
    if not app.config.get("RATELIMIT_KEY_PREFIX"):
        app.config["RATELIMIT_KEY_PREFIX"] = str(uuid.uuid4())
    limiter.init_app(app)

    upload_dir = app.config.get("UPLOAD_DIR")
    if upload_dir:
        os.makedirs(upload_dir, exist_ok=True)

    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(profiles_bp, url_prefix="/profile")
    app.register_blueprint(verify_bp, url_prefix="/verify")
    app.register_blueprint(admin_bp, url_prefix="/admin")

    @app.route("/health", methods=["GET"])
    def health_check():
        return jsonify({"status": "ok"})

    _register_error_handlers(app)

    return app


def _register_error_handlers(app: Flask) -> None:
    """Tag every request with an ID and render errors as JSON."""

    @app.before_request
    def _assign_request_id():
        _request_id()

    @app.after_request
    def _add_request_id_header(response):
        response.headers.setdefault("X-Request-ID", _request_id())
        return response

    @app.errorhandler(HTTPException)
    def _handle_http_exception(error: HTTPException):
        response = error_response(
            error.code or 500, getattr(error, "name", "Error"), error.description
        )
        # Keep headers such as Retry-After from rate limiting.
        for key, value in error.get_response().headers.items():
            if key.lower() not in ("content-type", "content-length"):
                response.headers.setdefault(key, value)
        return response

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):  # pragma: no cover
        db.session.rollback()
        app.logger.exception("Unhandled application error", exc_info=error)
        return error_response(
            500, "Internal Server Error", "An unexpected error occurred."
        )


if __name__ == "__main__":
    application = create_app()
    application.run(host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
