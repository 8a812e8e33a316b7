import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from pymongo.errors import DuplicateKeyError

from backend.auth import jwt_handler
from backend.auth.passwords import hash_password, verify_password
from backend.database import Database
from backend.models.document import parse_object_id
from backend.models.user import SELF_SERVICE_ROLES, AccountStatus, UserRole, public_user

logger = logging.getLogger(__name__)


def issue_token(user: dict) -> str:
    return jwt_handler.create_access_token(
        subject=str(user['_id']),
        email=user['email'],
        role=user['role'],
    )


def validate_self_service_role(role: str | None) -> str | None:
    if role and role not in SELF_SERVICE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f'Role must be one of: {", ".join(sorted(SELF_SERVICE_ROLES))}.',
        )
    return role


def ensure_not_suspended(user: dict) -> None:
    if user.get('status') == AccountStatus.SUSPENDED.value:
        logger.warning('Refused token for suspended account %s', user.get('email'))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Account suspended')


class AuthService:
    """Registration, login and profile bootstrap over the users collection."""

    def __init__(self, db: Database):
        self.db = db

    def _insert_user(self, user: dict) -> dict:
        try:
            result = self.db.users.insert_one(user)
        except DuplicateKeyError as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='User already exists') from exc
        user['_id'] = result.inserted_id
        return user

    def register(
        self,
        name: str,
        email: str,
        password: str,
        role: str | None = None,
        phone: str | None = None,
    ) -> tuple[str, dict]:
        validate_self_service_role(role)

        if self.db.users.find_one({'email': email}, {'_id': 1}):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='User already exists')

        user = self._insert_user({
            'name': name,
            'email': email,
            'password': hash_password(password),
            'role': role or UserRole.STUDENT.value,
            'phone': phone,
            'profileImage': '',
            'status': AccountStatus.ACTIVE.value,
            'createdAt': datetime.now(timezone.utc),
        })
        logger.info('Registered %s as %s', email, user['role'])

        return issue_token(user), public_user(user)

    def login(self, email: str, password: str) -> tuple[str, dict]:
        user = self.db.users.find_one({'email': email})
        if user is None or not verify_password(password, user.get('password')):
            logger.warning('Failed login for %s', email)
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid credentials')

        ensure_not_suspended(user)
        return issue_token(user), public_user(user)

    def federated_login(self, email: str, name: str | None, profile_image: str | None) -> tuple[str, dict]:
        """Trusts the upstream provider's assertion of the email address."""
        user = self.db.users.find_one({'email': email})

        if user is None:
            try:
                user = self._insert_user({
                    'name': name,
                    'email': email,
                    'role': UserRole.STUDENT.value,
                    'profileImage': profile_image or '',
                    'status': AccountStatus.ACTIVE.value,
                    'createdAt': datetime.now(timezone.utc),
                })
                logger.info('Created federated account for %s', email)
            except HTTPException:
                # Lost a race with a concurrent first login for the same email.
                user = self.db.users.find_one({'email': email})

        ensure_not_suspended(user)
        return issue_token(user), public_user(user)

    def save_profile(
        self,
        name: str | None,
        email: str,
        phone: str | None,
        role: str | None,
        profile_image: str | None,
    ) -> tuple[bool, dict]:
        """Merge non-empty fields into an existing user or create a passwordless one.

        Returns (created, user).
        """
        validate_self_service_role(role)

        supplied = {'name': name, 'phone': phone, 'role': role, 'profileImage': profile_image}
        existing = self.db.users.find_one({'email': email})

        if existing is not None:
            updates = {field: value for field, value in supplied.items() if value}
            if updates:
                updates['updatedAt'] = datetime.now(timezone.utc)
                self.db.users.update_one({'_id': existing['_id']}, {'$set': updates})
                existing.update(updates)
            return False, public_user(existing)

        user = self._insert_user({
            'name': name,
            'email': email,
            'phone': phone,
            'role': role or UserRole.STUDENT.value,
            'profileImage': profile_image or '',
            'status': AccountStatus.ACTIVE.value,
            'createdAt': datetime.now(timezone.utc),
        })
        return True, public_user(user)

    def current_user(self, user_id: str) -> dict:
        user = self.db.users.find_one({'_id': parse_object_id(user_id, 'User not found')})
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
        return public_user(user)

    def update_profile(
        self,
        user_id: str,
        name: str | None = None,
        phone: str | None = None,
        profile_image: str | None = None,
    ) -> dict:
        object_id = parse_object_id(user_id, 'User not found')
        updates = {
            field: value
            for field, value in {'name': name, 'phone': phone, 'profileImage': profile_image}.items()
            if value is not None
        }
        updates['updatedAt'] = datetime.now(timezone.utc)

        result = self.db.users.update_one({'_id': object_id}, {'$set': updates})
        if result.matched_count == 0:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

        return public_user(self.db.users.find_one({'_id': object_id}))
