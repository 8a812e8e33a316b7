"""Tuition posting definitions."""

import enum


class TuitionStatus(str, enum.Enum):
    """Moderation lifecycle controlling public visibility."""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


MODERATION_STATUSES = {TuitionStatus.APPROVED.value, TuitionStatus.REJECTED.value}

SORTABLE_FIELDS = {"createdAt", "updatedAt", "budget", "subject"}
DEFAULT_SORT_FIELD = "createdAt"
LATEST_LIMIT = 6
MAX_PAGE_LIMIT = 100

EDITABLE_FIELDS = ("subject", "class", "location", "budget", "schedule", "description")
