from fastapi import APIRouter, Depends
from pydantic import BaseModel

from backend.auth.dependencies import require_admin
from backend.database import Database, get_db
from backend.models.document import serialize, serialize_many
from backend.services.payment_service import PaymentService
from backend.services.tuition_service import TuitionService
from backend.services.user_service import UserService

# Every route below sits behind the admin gate.
router = APIRouter(tags=['admin'], dependencies=[Depends(require_admin)])


class UpdateUserRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    role: str | None = None
    status: str | None = None
    profileImage: str | None = None


class ModerateTuitionRequest(BaseModel):
    status: str


def get_user_service(db: Database = Depends(get_db)) -> UserService:
    return UserService(db)


def get_tuition_service(db: Database = Depends(get_db)) -> TuitionService:
    return TuitionService(db)


def get_payment_service(db: Database = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


@router.get('/analytics')
def get_analytics(service: PaymentService = Depends(get_payment_service)):
    return service.analytics()


@router.get('/transactions')
def list_transactions(service: PaymentService = Depends(get_payment_service)):
    result = service.transactions()
    return {'transactions': serialize_many(result['transactions']), 'summary': result['summary']}


@router.get('/users')
def list_users(service: UserService = Depends(get_user_service)):
    return {'users': serialize_many(service.list_users())}


@router.put('/users/{user_id}')
def update_user(user_id: str, data: UpdateUserRequest, service: UserService = Depends(get_user_service)):
    user = service.update_user(user_id, data.model_dump(exclude_unset=True))
    return {'message': 'User updated successfully', 'user': serialize(user)}


@router.delete('/users/{user_id}')
def delete_user(user_id: str, service: UserService = Depends(get_user_service)):
    service.delete_user(user_id)
    return {'message': 'User deleted successfully'}


@router.get('/tuitions')
def list_all_tuitions(service: TuitionService = Depends(get_tuition_service)):
    return {'tuitions': serialize_many(service.list_all())}


@router.get('/tuitions/pending')
def list_pending_tuitions(service: TuitionService = Depends(get_tuition_service)):
    return {'tuitions': serialize_many(service.list_pending())}


@router.patch('/tuitions/{tuition_id}')
def moderate_tuition(
    tuition_id: str,
    data: ModerateTuitionRequest,
    service: TuitionService = Depends(get_tuition_service),
):
    tuition = service.set_status(tuition_id, data.status)
    return {'message': f'Tuition {tuition["status"].lower()}', 'tuition': serialize(tuition)}
