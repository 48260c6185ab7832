"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from flask import Request
from werkzeug.exceptions import BadRequest


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if not data.get(key)]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(", ".join(sorted(missing)))
            )

    return data


def optional_json_body(req: Request) -> dict:
    """Return the JSON body if one was sent, otherwise an empty dict."""

    if not req.content_length:
        return {}
    return parse_json_request(req, allow_empty=True)


def parse_bool(value: object) -> bool | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "y"}:
        return True
    if text in {"0", "false", "no", "n"}:
        return False
    return None


def parse_choice(value: object, choices: Iterable[str], field: str) -> str:
    """Upper-case ``value`` and check it against ``choices``."""

    allowed = tuple(choices)
    text = str(value or "").strip().upper()
    if text not in allowed:
        raise BadRequest(f"{field} must be one of: {', '.join(allowed)}.")
    return text


def parse_datetime(value: object, field: str) -> datetime | None:
    """Parse an ISO 8601 date or datetime; empty values yield None."""

    if value in (None, ""):
        return None
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise BadRequest(f"{field} must be an ISO 8601 date.") from exc
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


def parse_text(value: object, field: str) -> str:
    """Return ``value`` stripped; None becomes "" and non-strings are a 400."""

    if value is None:
        return ""
    if not isinstance(value, str):
        raise BadRequest(f"{field} must be a string.")
    return value.strip()


def parse_extensions(configured: object, default: Iterable[str]) -> set[str]:
    """Normalise a configured list of file types to bare lower-case extensions.

    Accepts a comma-separated string or an iterable; MIME types and leading
    dots are reduced to the extension. jpeg and jpg always travel together.
    """

    if isinstance(configured, str):
        configured = configured.split(",")
    extensions = {
        str(item).strip().lower().rsplit("/", 1)[-1].lstrip(".")
        for item in configured or ()
    }
    extensions.discard("")
    if not extensions:
        extensions = set(default)
    if extensions & {"jpeg", "jpg"}:
        extensions |= {"jpeg", "jpg"}
    return extensions
