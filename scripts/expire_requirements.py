"""Expire lapsed compliance documents and purge stale sessions and tokens."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app import create_app  # noqa: E402
from models import db  # noqa: E402
from services import sessions, verification  # noqa: E402


def main() -> None:
    app = create_app()
    with app.app_context():
        expired = verification.expire_requirements()
        purged_sessions = sessions.purge_expired_sessions()
        purged_tokens = sessions.purge_expired_verification_tokens()
        db.session.commit()
        print(
            f"Expired {expired} requirements; purged {purged_sessions} sessions "
            f"and {purged_tokens} verification tokens"
        )


if __name__ == "__main__":
    main()
