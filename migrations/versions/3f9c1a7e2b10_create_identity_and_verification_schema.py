"""create identity, profile, verification and audit tables

Revision ID: 3f9c1a7e2b10
Revises:
Create Date: 2025-10-10 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f9c1a7e2b10"
down_revision = None
branch_labels = None
depends_on = None


ENUM_NAMES = (
    "user_role",
    "account_status",
    "verification_status",
    "requirement_status",
    "document_category",
    "audit_action",
)


def _timestamps() -> list:
    return [
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    """Create the full schema."""

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=True),
        sa.Column(
            "role",
            sa.Enum("WORKER", "CLIENT", "COORDINATOR", "ADMIN", name="user_role"),
            nullable=False,
            server_default=sa.text("'WORKER'"),
        ),
        sa.Column(
            "status",
            sa.Enum(
                "ACTIVE",
                "SUSPENDED",
                "LOCKED",
                "PENDING_VERIFICATION",
                name="account_status",
            ),
            nullable=False,
            server_default=sa.text("'ACTIVE'"),
        ),
        sa.Column("email_verified", sa.DateTime(), nullable=True),
        sa.Column("reset_password_token", sa.String(length=128), nullable=True),
        sa.Column("reset_password_expires", sa.DateTime(), nullable=True),
        sa.Column(
            "failed_login_attempts",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("account_locked_until", sa.DateTime(), nullable=True),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
        sa.Column("last_login_ip", sa.String(length=64), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("reset_password_token"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("provider", sa.String(length=64), nullable=False),
        sa.Column("provider_account_id", sa.String(length=255), nullable=False),
        sa.Column("refresh_token", sa.Text(), nullable=True),
        sa.Column("access_token", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.Integer(), nullable=True),
        sa.Column("token_type", sa.String(length=32), nullable=True),
        sa.Column("scope", sa.String(length=255), nullable=True),
        sa.Column("id_token", sa.Text(), nullable=True),
        sa.Column("session_state", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "provider", "provider_account_id", name="uq_accounts_provider_account"
        ),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"])

    op.create_table(
        "sessions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("session_token", sa.String(length=128), nullable=False, unique=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("expires", sa.DateTime(), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_sessions_user_id", "sessions", ["user_id"])

    op.create_table(
        "verification_tokens",
        sa.Column("identifier", sa.String(length=255), nullable=False),
        sa.Column("token", sa.String(length=128), nullable=False, unique=True),
        sa.Column("expires", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("identifier", "token", name="pk_verification_tokens"),
    )

    op.create_table(
        "worker_profiles",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("first_name", sa.String(length=120), nullable=False),
        sa.Column("middle_name", sa.String(length=120), nullable=True),
        sa.Column("last_name", sa.String(length=120), nullable=False),
        sa.Column("mobile", sa.String(length=32), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("city", sa.String(length=120), nullable=True),
        sa.Column("state", sa.String(length=64), nullable=True),
        sa.Column("postal_code", sa.String(length=16), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("date_of_birth", sa.String(length=32), nullable=True),
        sa.Column("gender", sa.String(length=32), nullable=True),
        sa.Column("languages", sa.JSON(), nullable=False),
        sa.Column("services", sa.JSON(), nullable=False),
        sa.Column("support_worker_categories", sa.JSON(), nullable=False),
        sa.Column("experience", sa.Text(), nullable=True),
        sa.Column("introduction", sa.Text(), nullable=True),
        sa.Column("qualifications", sa.Text(), nullable=True),
        sa.Column("has_vehicle", sa.String(length=32), nullable=True),
        sa.Column("fun_fact", sa.Text(), nullable=True),
        sa.Column("hobbies", sa.Text(), nullable=True),
        sa.Column("unique_service", sa.Text(), nullable=True),
        sa.Column("abn", sa.String(length=32), nullable=True),
        sa.Column("photos", sa.JSON(), nullable=True),
        sa.Column("verification_checklist", sa.JSON(), nullable=True),
        sa.Column("submitted_documents", sa.JSON(), nullable=True),
        sa.Column("setup_progress", sa.JSON(), nullable=True),
        sa.Column("profile_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "verification_status",
            sa.Enum(
                "NOT_STARTED",
                "IN_PROGRESS",
                "PENDING_REVIEW",
                "APPROVED",
                "REJECTED",
                name="verification_status",
            ),
            nullable=False,
            server_default=sa.text("'NOT_STARTED'"),
        ),
        sa.Column("verification_submitted_at", sa.DateTime(), nullable=True),
        sa.Column("verification_reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("verification_approved_at", sa.DateTime(), nullable=True),
        sa.Column("verification_rejected_at", sa.DateTime(), nullable=True),
        sa.Column("verification_notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_worker_profiles_verification_status",
        "worker_profiles",
        ["verification_status"],
    )

    op.create_table(
        "verification_requirements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "worker_profile_id",
            sa.Integer(),
            sa.ForeignKey("worker_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("requirement_type", sa.String(length=120), nullable=False),
        sa.Column("requirement_name", sa.String(length=255), nullable=False),
        sa.Column(
            "document_category",
            sa.Enum(
                "PRIMARY",
                "SECONDARY",
                "WORKING_RIGHTS",
                "SERVICE_QUALIFICATION",
                name="document_category",
            ),
            nullable=True,
        ),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "status",
            sa.Enum(
                "PENDING",
                "SUBMITTED",
                "APPROVED",
                "REJECTED",
                "EXPIRED",
                name="requirement_status",
            ),
            nullable=False,
            server_default=sa.text("'PENDING'"),
        ),
        sa.Column("document_url", sa.String(length=512), nullable=True),
        sa.Column("document_uploaded_at", sa.DateTime(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("reviewed_by", sa.String(length=255), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("rejected_at", sa.DateTime(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_verification_requirements_worker_profile_id",
        "verification_requirements",
        ["worker_profile_id"],
    )
    op.create_index(
        "ix_verification_requirements_status", "verification_requirements", ["status"]
    )
    op.create_index(
        "ix_verification_requirements_profile_type",
        "verification_requirements",
        ["worker_profile_id", "requirement_type"],
    )

    for table, extra in (
        ("client_profiles", []),
        (
            "coordinator_profiles",
            [sa.Column("organization", sa.String(length=255), nullable=True)],
        ),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(
                "user_id",
                sa.Integer(),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                nullable=False,
                unique=True,
            ),
            sa.Column("first_name", sa.String(length=120), nullable=False),
            sa.Column("last_name", sa.String(length=120), nullable=False),
            sa.Column("mobile", sa.String(length=32), nullable=False),
            sa.Column("location", sa.String(length=255), nullable=True),
            *extra,
            *_timestamps(),
        )

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "action",
            sa.Enum(
                "LOGIN_SUCCESS",
                "LOGIN_FAILED",
                "LOGOUT",
                "ACCOUNT_LOCKED",
                "ACCOUNT_UNLOCKED",
                "PASSWORD_CHANGE",
                "PASSWORD_RESET_REQUEST",
                "PASSWORD_RESET_SUCCESS",
                "EMAIL_VERIFIED",
                "ROLE_CHANGE",
                "STATUS_CHANGE",
                "PROFILE_UPDATE",
                "ACCOUNT_LINKED",
                "ACCOUNT_UNLINKED",
                "USER_DELETED",
                name="audit_action",
            ),
            nullable=False,
        ),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_logs_user_id", "audit_logs", ["user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])


def downgrade() -> None:
    """Drop the full schema."""

    op.drop_table("audit_logs")
    op.drop_table("coordinator_profiles")
    op.drop_table("client_profiles")
    op.drop_table("verification_requirements")
    op.drop_table("worker_profiles")
    op.drop_table("verification_tokens")
    op.drop_table("sessions")
    op.drop_table("accounts")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

    bind = op.get_bind()
    for name in ENUM_NAMES:
        sa.Enum(name=name).drop(bind, checkfirst=True)
