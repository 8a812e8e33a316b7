"""Helpers for moving MongoDB documents across the API boundary."""

from typing import Any

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException, status


def parse_object_id(value: str | ObjectId, not_found_detail: str = 'Not found') -> ObjectId:
    """Convert a path/body identifier to an ObjectId.

    A malformed identifier can never match a document, so it is reported the
    same way as a missing one.
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found_detail) from exc


def serialize(value: Any) -> Any:
    """Render ObjectIds as hex strings, recursing into dicts and lists."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {key: serialize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [serialize(item) for item in value]
    return value


def serialize_many(documents) -> list[dict]:
    return [serialize(document) for document in documents]
