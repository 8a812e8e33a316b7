import os
from datetime import datetime, timedelta, timezone

import mongomock
import pytest
from fastapi.testclient import TestClient

os.environ.setdefault('BCRYPT_ROUNDS', '4')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')

from backend.database import Database, get_db  # noqa: E402
from backend.main import app  # noqa: E402
from backend.services.auth_service import issue_token  # noqa: E402


@pytest.fixture
def db() -> Database:
    return Database(mongomock.MongoClient()['etuition_test'])


@pytest.fixture
def client(db: Database):
    app.dependency_overrides[get_db] = lambda: db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db: Database):
    """Insert a user directly and return (document, bearer headers)."""

    def _make_user(role: str = 'Student', email: str | None = None, name: str = 'Test User', **extra):
        user = {
            'name': name,
            'email': email or f'{role.lower()}{db.users.count_documents({})}@example.com',
            'role': role,
            'phone': '01700000000',
            'profileImage': '',
            'status': 'active',
            'createdAt': datetime.now(timezone.utc),
            **extra,
        }
        user['_id'] = db.users.insert_one(user).inserted_id
        return user, {'Authorization': f'Bearer {issue_token(user)}'}

    return _make_user


@pytest.fixture
def make_tuition(db: Database):
    def _make_tuition(owner: dict, status: str = 'Approved', minutes_ago: int = 0, **fields):
        created_at = datetime.now(timezone.utc) - timedelta(minutes=minutes_ago)
        tuition = {
            'subject': 'Mathematics',
            'class': 'Class 8',
            'location': 'Dhanmondi, Dhaka',
            'budget': 5000,
            'schedule': '3 days/week',
            'description': 'Need a patient tutor.',
            'postedBy': owner['_id'],
            'status': status,
            'createdAt': created_at,
            'updatedAt': created_at,
            **fields,
        }
        tuition['_id'] = db.tuitions.insert_one(tuition).inserted_id
        return tuition

    return _make_tuition


@pytest.fixture
def make_application(db: Database):
    def _make_application(tuition: dict, tutor: dict, status: str = 'Pending', **fields):
        now = datetime.now(timezone.utc)
        application = {
            'tuitionId': tuition['_id'],
            'tutorId': tutor['_id'],
            'tutorName': tutor['name'],
            'tutorEmail': tutor['email'],
            'tutorImage': tutor.get('profileImage', ''),
            'qualifications': 'BSc in Mathematics',
            'experience': '3 years',
            'expectedSalary': 6000,
            'status': status,
            'createdAt': now,
            'updatedAt': now,
            **fields,
        }
        application['_id'] = db.applications.insert_one(application).inserted_id
        return application

    return _make_application
