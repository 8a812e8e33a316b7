from fastapi import APIRouter, Depends, Query, Request, status
from pydantic import BaseModel, ConfigDict, Field, field_validator

from backend.auth.dependencies import CurrentUser, get_current_user
from backend.core.request_body import parse_json_body
from backend.database import Database, get_db
from backend.models.document import serialize, serialize_many
from backend.models.tuition import DEFAULT_SORT_FIELD, MAX_PAGE_LIMIT
from backend.services.tuition_service import TuitionService

router = APIRouter(tags=['tuitions'])


class CreateTuitionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject: str
    class_name: str = Field(alias='class')
    location: str
    budget: float = Field(ge=0)
    schedule: str = ''
    description: str = ''

    @field_validator('subject', 'class_name', 'location')
    @classmethod
    def validate_required_text(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('This field is required.')
        return normalized


class UpdateTuitionRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    subject: str | None = None
    class_name: str | None = Field(default=None, alias='class')
    location: str | None = None
    budget: float | None = Field(default=None, ge=0)
    schedule: str | None = None
    description: str | None = None

    @field_validator('subject', 'class_name', 'location')
    @classmethod
    def validate_required_text(cls, value: str | None) -> str:
        # Validators only run for fields the client actually sent.
        if value is None or not value.strip():
            raise ValueError('This field cannot be empty.')
        return value.strip()

    @field_validator('budget')
    @classmethod
    def validate_budget(cls, value: float | None) -> float:
        if value is None:
            raise ValueError('Budget cannot be null.')
        return value


def to_document_fields(data: BaseModel) -> dict:
    # by_alias maps class_name back to the stored "class" key.
    return data.model_dump(by_alias=True, exclude_unset=True)


def get_tuition_service(db: Database = Depends(get_db)) -> TuitionService:
    return TuitionService(db)


@router.post('/tuitions', status_code=status.HTTP_201_CREATED)
def create_tuition(
    data: CreateTuitionRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: TuitionService = Depends(get_tuition_service),
):
    tuition = service.create(current_user.user_id, data.model_dump(by_alias=True))
    return {'message': 'Tuition posted successfully', 'tuition': serialize(tuition)}


@router.get('/tuitions')
def list_tuitions(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=MAX_PAGE_LIMIT),
    subject: str | None = None,
    location: str | None = None,
    class_name: str | None = Query(default=None, alias='class'),
    sort_by: str = Query(default=DEFAULT_SORT_FIELD, alias='sortBy'),
    order: str = 'desc',
    service: TuitionService = Depends(get_tuition_service),
):
    result = service.list_approved(
        page=page,
        limit=limit,
        subject=subject,
        location=location,
        class_name=class_name,
        sort_by=sort_by,
        order=order,
    )
    return {'tuitions': serialize_many(result['tuitions']), 'pagination': result['pagination']}


@router.get('/tuitions/latest/home')
def list_latest_tuitions(service: TuitionService = Depends(get_tuition_service)):
    return {'tuitions': serialize_many(service.latest())}


@router.get('/tuitions/{tuition_id}')
def get_tuition(tuition_id: str, service: TuitionService = Depends(get_tuition_service)):
    return {'tuition': serialize(service.get_with_poster(tuition_id))}


@router.get('/my-tuitions')
def list_my_tuitions(
    current_user: CurrentUser = Depends(get_current_user),
    service: TuitionService = Depends(get_tuition_service),
):
    return {'tuitions': serialize_many(service.list_by_owner(current_user.user_id))}


def get_tuition_for_update(
    tuition_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: TuitionService = Depends(get_tuition_service),
) -> dict:
    return service.get_owned(tuition_id, current_user.user_id, 'update')


async def get_tuition_update(
    request: Request,
    tuition: dict = Depends(get_tuition_for_update),
) -> UpdateTuitionRequest:
    return await parse_json_body(request, UpdateTuitionRequest)


@router.put('/tuitions/{tuition_id}')
def update_tuition(
    data: UpdateTuitionRequest = Depends(get_tuition_update),
    tuition: dict = Depends(get_tuition_for_update),
    service: TuitionService = Depends(get_tuition_service),
):
    tuition = service.apply_update(tuition, to_document_fields(data))
    return {'message': 'Tuition updated successfully', 'tuition': serialize(tuition)}


@router.delete('/tuitions/{tuition_id}')
def delete_tuition(
    tuition_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    service: TuitionService = Depends(get_tuition_service),
):
    service.delete(tuition_id, current_user.user_id)
    return {'message': 'Tuition deleted successfully'}
