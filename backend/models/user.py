"""User document definitions."""

import enum


class UserRole(str, enum.Enum):
    STUDENT = "Student"
    TUTOR = "Tutor"
    ADMIN = "Admin"


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"


# Roles a user may pick for themselves; Admin is granted by another admin.
SELF_SERVICE_ROLES = {UserRole.STUDENT.value, UserRole.TUTOR.value}

PUBLIC_FIELDS = ("_id", "name", "email", "role", "phone", "profileImage", "status", "createdAt")

# Projection that keeps the credential hash out of every query result.
WITHOUT_PASSWORD = {"password": 0}


def public_user(document: dict) -> dict:
    """Represents the profile fields that may leave the server."""
    return {field: document.get(field) for field in PUBLIC_FIELDS if field in document}
