import logging
import math
import re
from datetime import datetime, timezone

from fastapi import HTTPException, status
from pymongo import ASCENDING, DESCENDING

from backend.database import Database
from backend.models.document import parse_object_id
from backend.models.tuition import (
    DEFAULT_SORT_FIELD,
    EDITABLE_FIELDS,
    LATEST_LIMIT,
    MODERATION_STATUSES,
    SORTABLE_FIELDS,
    TuitionStatus,
)

logger = logging.getLogger(__name__)

NEWEST_FIRST = [('createdAt', DESCENDING), ('_id', DESCENDING)]


def build_listing_filter(
    subject: str | None = None,
    location: str | None = None,
    class_name: str | None = None,
) -> dict:
    listing_filter: dict = {'status': TuitionStatus.APPROVED.value}
    for field, value in (('subject', subject), ('location', location), ('class', class_name)):
        if value and value.strip():
            listing_filter[field] = {'$regex': re.escape(value.strip()), '$options': 'i'}
    return listing_filter


def build_sort(sort_by: str | None, order: str | None) -> list[tuple[str, int]]:
    field = sort_by if sort_by in SORTABLE_FIELDS else DEFAULT_SORT_FIELD
    direction = ASCENDING if (order or '').lower() == 'asc' else DESCENDING
    return [(field, direction), ('_id', direction)]


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


class TuitionService:
    """Tuition postings and their moderation."""

    def __init__(self, db: Database):
        self.db = db

    def _get_or_404(self, tuition_id: str) -> dict:
        tuition = self.db.tuitions.find_one({'_id': parse_object_id(tuition_id, 'Tuition not found')})
        if tuition is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Tuition not found')
        return tuition

    def get_owned(self, tuition_id: str, owner_id: str, action: str) -> dict:
        tuition = self._get_or_404(tuition_id)
        if str(tuition.get('postedBy')) != owner_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f'Not authorized to {action} this tuition',
            )
        return tuition

    def create(self, owner_id: str, fields: dict) -> dict:
        now = datetime.now(timezone.utc)
        tuition = {
            'subject': fields.get('subject'),
            'class': fields.get('class'),
            'location': fields.get('location'),
            'budget': fields.get('budget'),
            'schedule': fields.get('schedule', ''),
            'description': fields.get('description', ''),
            'postedBy': parse_object_id(owner_id, 'User not found'),
            'status': TuitionStatus.PENDING.value,
            'createdAt': now,
            'updatedAt': now,
        }
        result = self.db.tuitions.insert_one(tuition)
        tuition['_id'] = result.inserted_id
        return tuition

    def list_approved(
        self,
        page: int = 1,
        limit: int = 10,
        subject: str | None = None,
        location: str | None = None,
        class_name: str | None = None,
        sort_by: str | None = DEFAULT_SORT_FIELD,
        order: str | None = 'desc',
    ) -> dict:
        listing_filter = build_listing_filter(subject, location, class_name)

        tuitions = list(
            self.db.tuitions.find(listing_filter)
            .sort(build_sort(sort_by, order))
            .skip((page - 1) * limit)
            .limit(limit)
        )
        total = self.db.tuitions.count_documents(listing_filter)

        return {
            'tuitions': tuitions,
            'pagination': {
                'page': page,
                'limit': limit,
                'total': total,
                'pages': page_count(total, limit),
            },
        }

    def latest(self) -> list[dict]:
        return list(
            self.db.tuitions.find({'status': TuitionStatus.APPROVED.value})
            .sort(NEWEST_FIRST)
            .limit(LATEST_LIMIT)
        )

    def get_with_poster(self, tuition_id: str) -> dict:
        tuition = self._get_or_404(tuition_id)
        tuition['postedByUser'] = self.db.users.find_one(
            {'_id': tuition.get('postedBy')},
            {'name': 1, 'profileImage': 1},
        )
        return tuition

    def list_by_owner(self, owner_id: str) -> list[dict]:
        owner = parse_object_id(owner_id, 'User not found')
        return list(self.db.tuitions.find({'postedBy': owner}).sort(NEWEST_FIRST))

    def update(self, tuition_id: str, owner_id: str, fields: dict) -> dict:
        return self.apply_update(self.get_owned(tuition_id, owner_id, 'update'), fields)

    def apply_update(self, tuition: dict, fields: dict) -> dict:
        """Write editable fields onto a tuition whose ownership is already verified."""
        updates = {field: fields[field] for field in EDITABLE_FIELDS if field in fields}
        updates['updatedAt'] = datetime.now(timezone.utc)
        self.db.tuitions.update_one({'_id': tuition['_id']}, {'$set': updates})

        tuition.update(updates)
        return tuition

    def delete(self, tuition_id: str, owner_id: str) -> None:
        tuition = self.get_owned(tuition_id, owner_id, 'delete')

        self.db.tuitions.delete_one({'_id': tuition['_id']})
        removed = self.db.applications.delete_many({'tuitionId': tuition['_id']})
        if removed.deleted_count:
            logger.info('Removed %d applications of deleted tuition %s', removed.deleted_count, tuition['_id'])

    def list_pending(self) -> list[dict]:
        return list(self.db.tuitions.find({'status': TuitionStatus.PENDING.value}).sort(NEWEST_FIRST))

    def list_all(self) -> list[dict]:
        return list(self.db.tuitions.find().sort(NEWEST_FIRST))

    def set_status(self, tuition_id: str, new_status: str) -> dict:
        if new_status not in MODERATION_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid status')

        tuition = self._get_or_404(tuition_id)
        updates = {'status': new_status, 'updatedAt': datetime.now(timezone.utc)}
        self.db.tuitions.update_one({'_id': tuition['_id']}, {'$set': updates})

        tuition.update(updates)
        logger.info('Tuition %s moderated to %s', tuition['_id'], new_status)
        return tuition
