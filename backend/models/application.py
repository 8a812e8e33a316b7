"""Tutor application definitions."""

import enum


class ApplicationStatus(str, enum.Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


APPLICATION_STATUSES = {item.value for item in ApplicationStatus}
