"""OAuth account linkage model."""

from datetime import datetime

from . import db


class Account(db.Model):
    """A third-party identity provider account linked to a user."""

    __tablename__ = "accounts"
    __table_args__ = (
        db.UniqueConstraint(
            "provider", "provider_account_id", name="uq_accounts_provider_account"
        ),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type = db.Column(db.String(32), nullable=False, default="oauth")
    provider = db.Column(db.String(64), nullable=False)
    provider_account_id = db.Column(db.String(255), nullable=False)
    refresh_token = db.Column(db.Text, nullable=True)
    access_token = db.Column(db.Text, nullable=True)
    expires_at = db.Column(db.Integer, nullable=True)
    token_type = db.Column(db.String(32), nullable=True)
    scope = db.Column(db.String(255), nullable=True)
    id_token = db.Column(db.Text, nullable=True)
    session_state = db.Column(db.String(255), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    user = db.relationship("User", back_populates="accounts")

    def to_dict(self) -> dict:
        """Serialize the linkage without provider tokens."""

        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "provider": self.provider,
            "provider_account_id": self.provider_account_id,
            "expires_at": self.expires_at,
            "scope": self.scope,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
