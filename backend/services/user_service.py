import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from pymongo import DESCENDING

from backend.database import Database
from backend.models.document import parse_object_id
from backend.models.user import WITHOUT_PASSWORD, AccountStatus, UserRole

logger = logging.getLogger(__name__)

NEWEST_FIRST = [('createdAt', DESCENDING), ('_id', DESCENDING)]
LATEST_TUTORS_LIMIT = 6

ROLES = {role.value for role in UserRole}
ACCOUNT_STATUSES = {item.value for item in AccountStatus}


class UserService:
    """Public tutor directory and admin user management."""

    def __init__(self, db: Database):
        self.db = db

    def _tutor_filter(self) -> dict:
        return {'role': UserRole.TUTOR.value, 'status': {'$ne': AccountStatus.SUSPENDED.value}}

    def list_tutors(self) -> list[dict]:
        return list(self.db.users.find(self._tutor_filter(), WITHOUT_PASSWORD).sort(NEWEST_FIRST))

    def latest_tutors(self) -> list[dict]:
        return list(
            self.db.users.find(self._tutor_filter(), WITHOUT_PASSWORD)
            .sort(NEWEST_FIRST)
            .limit(LATEST_TUTORS_LIMIT)
        )

    def get_tutor(self, tutor_id: str) -> dict:
        tutor = self.db.users.find_one(
            {'_id': parse_object_id(tutor_id, 'Tutor not found'), 'role': UserRole.TUTOR.value},
            WITHOUT_PASSWORD,
        )
        if tutor is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Tutor not found')
        return tutor

    def list_users(self) -> list[dict]:
        return list(self.db.users.find({}, WITHOUT_PASSWORD).sort(NEWEST_FIRST))

    def update_user(self, user_id: str, fields: dict) -> dict:
        if fields.get('role') is not None and fields['role'] not in ROLES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid role')
        if fields.get('status') is not None and fields['status'] not in ACCOUNT_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid status')

        object_id = parse_object_id(user_id, 'User not found')
        updates = {field: value for field, value in fields.items() if value is not None}
        updates['updatedAt'] = datetime.now(timezone.utc)

        result = self.db.users.update_one({'_id': object_id}, {'$set': updates})
        if result.matched_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

        logger.info('Admin updated user %s: %s', object_id, sorted(updates))
        return self.db.users.find_one({'_id': object_id}, WITHOUT_PASSWORD)

    def delete_user(self, user_id: str) -> None:
        object_id = parse_object_id(user_id, 'User not found')
        result = self.db.users.delete_one({'_id': object_id})
        if result.deleted_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
        logger.info('Admin deleted user %s', object_id)
