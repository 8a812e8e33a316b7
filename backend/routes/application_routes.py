from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, Field

from backend.auth.dependencies import CurrentUser, get_current_user
from backend.core.request_body import parse_json_body
from backend.database import Database, get_db
from backend.models.document import serialize, serialize_many
from backend.services.application_service import ApplicationService

router = APIRouter(tags=['applications'])


class CreateApplicationRequest(BaseModel):
    tuitionId: str
    qualifications: str = ''
    experience: str = ''
    expectedSalary: float = Field(ge=0)


class UpdateApplicationStatusRequest(BaseModel):
    status: str


def get_application_service(db: Database = Depends(get_db)) -> ApplicationService:
    return ApplicationService(db)


@router.post('/applications', status_code=status.HTTP_201_CREATED)
def submit_application(
    data: CreateApplicationRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.submit(
        tutor_id=current_user.user_id,
        tuition_id=data.tuitionId,
        qualifications=data.qualifications,
        experience=data.experience,
        expected_salary=data.expectedSalary,
    )
    return {'message': 'Application submitted successfully', 'application': serialize(application)}


@router.get('/my-applications')
def list_my_applications(
    current_user: CurrentUser = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    return {'applications': serialize_many(service.list_by_tutor(current_user.user_id))}


@router.get('/tuitions/{tuition_id}/applications')
def list_tuition_applications(
    tuition_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    return {'applications': serialize_many(service.list_for_tuition(tuition_id, current_user.user_id))}


@router.get('/tuitions/{tuition_id}/applied-tutors')
def list_applied_tutors(
    tuition_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    return {'tutors': serialize_many(service.applied_tutors(tuition_id, current_user.user_id))}


@router.get('/ongoing-tuitions')
def list_ongoing_tuitions(
    current_user: CurrentUser = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    return {'tuitions': serialize_many(service.ongoing_for_tutor(current_user.user_id))}


def get_application_for_owner(
    application_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
) -> dict:
    return service.get_for_tuition_owner(application_id, current_user.user_id)


async def get_status_update(
    request: Request,
    application: dict = Depends(get_application_for_owner),
) -> UpdateApplicationStatusRequest:
    return await parse_json_body(request, UpdateApplicationStatusRequest)


@router.patch('/applications/{application_id}')
def update_application_status(
    data: UpdateApplicationStatusRequest = Depends(get_status_update),
    application: dict = Depends(get_application_for_owner),
    service: ApplicationService = Depends(get_application_service),
):
    application = service.apply_status(application, data.status)
    return {'message': 'Application status updated', 'application': serialize(application)}


@router.delete('/applications/{application_id}')
def delete_application(
    application_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: ApplicationService = Depends(get_application_service),
):
    service.delete(application_id, current_user.user_id)
    return {'message': 'Application deleted successfully'}
