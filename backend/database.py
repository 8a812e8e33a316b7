import logging
from threading import Lock

from fastapi import Request
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.database import Database as MongoDatabase

from backend.core import config

logger = logging.getLogger(__name__)


class Database:
    """Collection handles shared by the services of one application instance."""

    def __init__(self, db: MongoDatabase, client: MongoClient | None = None):
        self.client = client
        self.db = db
        self.users = db['users']
        self.tuitions = db['tuitions']
        self.applications = db['applications']
        self.payments = db['payments']

        self._index_lock = Lock()
        self._indexes_checked = False

    @classmethod
    def connect(cls, uri: str | None = None, name: str | None = None) -> 'Database':
        client = MongoClient(uri or config.DB_URI, serverSelectionTimeoutMS=5000)
        return cls(client[name or config.DB_NAME], client=client)

    def ensure_indexes(self) -> None:
        if self._indexes_checked:
            return

        with self._index_lock:
            if self._indexes_checked:
                return

            self.users.create_index('email', unique=True)
            self.users.create_index([('role', ASCENDING), ('createdAt', DESCENDING)])
            self.tuitions.create_index([('status', ASCENDING), ('createdAt', DESCENDING)])
            self.tuitions.create_index('postedBy')
            self.applications.create_index('tuitionId')
            self.applications.create_index([('tutorId', ASCENDING), ('status', ASCENDING)])
            self.payments.create_index('studentId')
            self.payments.create_index('tutorId')

            self._indexes_checked = True
            logger.info('MongoDB indexes ensured on %s', self.db.name)

    def close(self) -> None:
        if self.client is not None:
            self.client.close()


def get_db(request: Request) -> Database:
    return request.app.state.db
