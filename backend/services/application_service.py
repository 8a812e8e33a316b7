import logging
from datetime import datetime, timezone

from fastapi import HTTPException, status
from pymongo import DESCENDING

from backend.database import Database
from backend.models.application import APPLICATION_STATUSES, ApplicationStatus
from backend.models.document import parse_object_id
from backend.models.user import WITHOUT_PASSWORD, public_user

logger = logging.getLogger(__name__)

NEWEST_FIRST = [('createdAt', DESCENDING), ('_id', DESCENDING)]


class ApplicationService:
    """Tutor applications against tuition postings."""

    def __init__(self, db: Database):
        self.db = db

    def _get_tuition_or_404(self, tuition_id) -> dict:
        tuition = self.db.tuitions.find_one({'_id': parse_object_id(tuition_id, 'Tuition not found')})
        if tuition is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Tuition not found')
        return tuition

    def _get_application_or_404(self, application_id: str) -> dict:
        application = self.db.applications.find_one(
            {'_id': parse_object_id(application_id, 'Application not found')}
        )
        if application is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Application not found')
        return application

    def _get_owned_tuition(self, tuition_id, requester_id: str) -> dict:
        tuition = self._get_tuition_or_404(tuition_id)
        if str(tuition.get('postedBy')) != requester_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Not authorized to manage applications for this tuition',
            )
        return tuition

    def submit(
        self,
        tutor_id: str,
        tuition_id: str,
        qualifications: str,
        experience: str,
        expected_salary: float,
    ) -> dict:
        tuition = self._get_tuition_or_404(tuition_id)

        tutor = self.db.users.find_one({'_id': parse_object_id(tutor_id, 'User not found')})
        if tutor is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

        if self.db.applications.find_one({'tuitionId': tuition['_id'], 'tutorId': tutor['_id']}, {'_id': 1}):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Already applied to this tuition')

        now = datetime.now(timezone.utc)
        # Tutor display fields are a snapshot; later profile edits do not rewrite history.
        application = {
            'tuitionId': tuition['_id'],
            'tutorId': tutor['_id'],
            'tutorName': tutor.get('name'),
            'tutorEmail': tutor.get('email'),
            'tutorImage': tutor.get('profileImage', ''),
            'qualifications': qualifications,
            'experience': experience,
            'expectedSalary': expected_salary,
            'status': ApplicationStatus.PENDING.value,
            'createdAt': now,
            'updatedAt': now,
        }
        result = self.db.applications.insert_one(application)
        application['_id'] = result.inserted_id
        return application

    def list_by_tutor(self, tutor_id: str) -> list[dict]:
        tutor = parse_object_id(tutor_id, 'User not found')
        return list(self.db.applications.find({'tutorId': tutor}).sort(NEWEST_FIRST))

    def list_for_tuition(self, tuition_id: str, requester_id: str) -> list[dict]:
        tuition = self._get_owned_tuition(tuition_id, requester_id)
        return list(self.db.applications.find({'tuitionId': tuition['_id']}).sort(NEWEST_FIRST))

    def applied_tutors(self, tuition_id: str, requester_id: str) -> list[dict]:
        applications = self.list_for_tuition(tuition_id, requester_id)

        tutor_ids = list({application['tutorId'] for application in applications})
        tutors = {
            tutor['_id']: public_user(tutor)
            for tutor in self.db.users.find({'_id': {'$in': tutor_ids}}, WITHOUT_PASSWORD)
        }
        return [
            {**application, 'tutor': tutors.get(application['tutorId'])}
            for application in applications
        ]

    def get_for_tuition_owner(self, application_id: str, requester_id: str) -> dict:
        application = self._get_application_or_404(application_id)
        self._get_owned_tuition(application['tuitionId'], requester_id)
        return application

    def set_status(self, application_id: str, requester_id: str, new_status: str) -> dict:
        return self.apply_status(self.get_for_tuition_owner(application_id, requester_id), new_status)

    def apply_status(self, application: dict, new_status: str) -> dict:
        if new_status not in APPLICATION_STATUSES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid status')

        updates = {'status': new_status, 'updatedAt': datetime.now(timezone.utc)}
        self.db.applications.update_one({'_id': application['_id']}, {'$set': updates})

        application.update(updates)
        logger.info('Application %s set to %s', application['_id'], new_status)
        return application

    def delete(self, application_id: str, tutor_id: str) -> None:
        application = self._get_application_or_404(application_id)

        if str(application.get('tutorId')) != tutor_id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail='Not authorized to delete this application',
            )

        if application.get('status') != ApplicationStatus.PENDING.value:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Cannot delete an application that is not pending',
            )

        self.db.applications.delete_one({'_id': application['_id']})

    def ongoing_for_tutor(self, tutor_id: str) -> list[dict]:
        tutor = parse_object_id(tutor_id, 'User not found')
        applications = list(
            self.db.applications.find({'tutorId': tutor, 'status': ApplicationStatus.APPROVED.value})
            .sort(NEWEST_FIRST)
        )

        tuitions = {
            tuition['_id']: tuition
            for tuition in self.db.tuitions.find(
                {'_id': {'$in': [application['tuitionId'] for application in applications]}}
            )
        }

        ongoing = []
        for application in applications:
            tuition = tuitions.get(application['tuitionId'])
            if tuition is None:
                continue
            ongoing.append({
                **tuition,
                'application': {
                    '_id': application['_id'],
                    'status': application['status'],
                    'expectedSalary': application.get('expectedSalary'),
                    'qualifications': application.get('qualifications'),
                    'experience': application.get('experience'),
                    'createdAt': application.get('createdAt'),
                    'updatedAt': application.get('updatedAt'),
                },
            })
        return ongoing
