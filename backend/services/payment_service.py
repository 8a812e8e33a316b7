import logging
from datetime import datetime, timezone
from decimal import Decimal

from fastapi import HTTPException, status
from pymongo import DESCENDING

from backend.database import Database
from backend.models.application import ApplicationStatus
from backend.models.document import parse_object_id
from backend.models.payment import (
    PAYMENT_SUCCESS,
    from_minor_units,
    generate_transaction_id,
    to_minor_units,
    total_amount,
)
from backend.models.tuition import TuitionStatus
from backend.models.user import UserRole

logger = logging.getLogger(__name__)

NEWEST_FIRST = [('createdAt', DESCENDING), ('_id', DESCENDING)]


class PaymentService:
    """Append-only payment records and the reports derived from them."""

    def __init__(self, db: Database):
        self.db = db

    def record(
        self,
        payer_id: str,
        application_id: str,
        amount: Decimal,
        tutor_id: str | None = None,
    ) -> dict:
        application = self.db.applications.find_one(
            {'_id': parse_object_id(application_id, 'Application not found')}
        )
        if application is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Application not found')

        created_at = datetime.now(timezone.utc)
        minor = to_minor_units(amount)
        payment = {
            'applicationId': application['_id'],
            'tuitionId': application.get('tuitionId'),
            'tutorId': parse_object_id(tutor_id, 'Tutor not found') if tutor_id else application.get('tutorId'),
            'studentId': parse_object_id(payer_id, 'User not found'),
            'amount': from_minor_units(minor),
            'amountMinor': minor,
            'status': PAYMENT_SUCCESS,
            'transactionId': generate_transaction_id(created_at),
            'createdAt': created_at,
        }
        result = self.db.payments.insert_one(payment)
        payment['_id'] = result.inserted_id

        # Not atomic with the insert above: a failure here leaves the payment
        # recorded against an application that is still Pending.
        self.db.applications.update_one(
            {'_id': application['_id']},
            {'$set': {'status': ApplicationStatus.APPROVED.value, 'updatedAt': created_at}},
        )
        logger.info('Recorded payment %s for application %s', payment['transactionId'], application['_id'])

        return payment

    def for_student(self, payer_id: str) -> dict:
        payer = parse_object_id(payer_id, 'User not found')
        payments = list(self.db.payments.find({'studentId': payer}).sort(NEWEST_FIRST))
        return {'payments': payments, 'count': len(payments), 'totalSpent': total_amount(payments)}

    def for_tutor(self, tutor_id: str) -> dict:
        tutor = parse_object_id(tutor_id, 'User not found')
        payments = list(self.db.payments.find({'tutorId': tutor}).sort(NEWEST_FIRST))
        return {'payments': payments, 'count': len(payments), 'totalRevenue': total_amount(payments)}

    def transactions(self) -> dict:
        payments = list(self.db.payments.find().sort(NEWEST_FIRST))
        return {
            'transactions': payments,
            'summary': {'count': len(payments), 'total': total_amount(payments)},
        }

    def analytics(self) -> dict:
        users = self.db.users
        tuitions = self.db.tuitions
        applications = self.db.applications
        payments = list(self.db.payments.find({}, {'amount': 1, 'amountMinor': 1}))

        return {
            'users': {
                'total': users.count_documents({}),
                'students': users.count_documents({'role': UserRole.STUDENT.value}),
                'tutors': users.count_documents({'role': UserRole.TUTOR.value}),
                'admins': users.count_documents({'role': UserRole.ADMIN.value}),
            },
            'tuitions': {
                'total': tuitions.count_documents({}),
                'pending': tuitions.count_documents({'status': TuitionStatus.PENDING.value}),
                'approved': tuitions.count_documents({'status': TuitionStatus.APPROVED.value}),
                'rejected': tuitions.count_documents({'status': TuitionStatus.REJECTED.value}),
            },
            'applications': {
                'total': applications.count_documents({}),
                'pending': applications.count_documents({'status': ApplicationStatus.PENDING.value}),
                'approved': applications.count_documents({'status': ApplicationStatus.APPROVED.value}),
                'rejected': applications.count_documents({'status': ApplicationStatus.REJECTED.value}),
            },
            'payments': {
                'count': len(payments),
                'totalEarnings': total_amount(payments),
            },
        }
