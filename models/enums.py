"""Enumerated values shared by the models."""

USER_ROLES = ("WORKER", "CLIENT", "COORDINATOR", "ADMIN")
SELF_SERVICE_ROLES = ("WORKER", "CLIENT", "COORDINATOR")

ACCOUNT_STATUSES = ("ACTIVE", "SUSPENDED", "LOCKED", "PENDING_VERIFICATION")

VERIFICATION_STATUSES = (
    "NOT_STARTED",
    "IN_PROGRESS",
    "PENDING_REVIEW",
    "APPROVED",
    "REJECTED",
)

REQUIREMENT_STATUSES = ("PENDING", "SUBMITTED", "APPROVED", "REJECTED", "EXPIRED")

DOCUMENT_CATEGORIES = (
    "PRIMARY",
    "SECONDARY",
    "WORKING_RIGHTS",
    "SERVICE_QUALIFICATION",
)

AUDIT_ACTIONS = (
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
)
