from fastapi import APIRouter, Depends

from backend.database import Database, get_db
from backend.models.document import serialize, serialize_many
from backend.services.user_service import UserService

router = APIRouter(tags=['tutors'])


def get_user_service(db: Database = Depends(get_db)) -> UserService:
    return UserService(db)


@router.get('/tutors')
def list_tutors(service: UserService = Depends(get_user_service)):
    return {'tutors': serialize_many(service.list_tutors())}


@router.get('/tutors/latest')
def list_latest_tutors(service: UserService = Depends(get_user_service)):
    return {'tutors': serialize_many(service.latest_tutors())}


@router.get('/tutors/{tutor_id}')
def get_tutor(tutor_id: str, service: UserService = Depends(get_user_service)):
    return {'tutor': serialize(service.get_tutor(tutor_id))}
