from decimal import Decimal

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from backend.auth.dependencies import CurrentUser, get_current_user
from backend.database import Database, get_db
from backend.models.document import serialize, serialize_many
from backend.services.payment_service import PaymentService

router = APIRouter(tags=['payments'])


class CreatePaymentRequest(BaseModel):
    applicationId: str
    amount: Decimal = Field(gt=0, decimal_places=2)
    tutorId: str | None = None


def get_payment_service(db: Database = Depends(get_db)) -> PaymentService:
    return PaymentService(db)


@router.post('/payments', status_code=status.HTTP_201_CREATED)
def create_payment(
    data: CreatePaymentRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    payment = service.record(
        payer_id=current_user.user_id,
        application_id=data.applicationId,
        amount=data.amount,
        tutor_id=data.tutorId,
    )
    return {'message': 'Payment recorded successfully', 'payment': serialize(payment)}


@router.get('/my-payments')
def list_my_payments(
    current_user: CurrentUser = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    result = service.for_student(current_user.user_id)
    return {**result, 'payments': serialize_many(result['payments'])}


@router.get('/tutor-revenue')
def get_tutor_revenue(
    current_user: CurrentUser = Depends(get_current_user),
    service: PaymentService = Depends(get_payment_service),
):
    result = service.for_tutor(current_user.user_id)
    return {**result, 'payments': serialize_many(result['payments'])}
