from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, field_validator

from backend.auth.dependencies import CurrentUser, get_current_user
from backend.database import Database, get_db
from backend.models.document import serialize
from backend.services.auth_service import AuthService

router = APIRouter(tags=['auth'])


def _normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized or '@' not in normalized:
        raise ValueError('A valid email is required.')
    return normalized


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    role: str | None = None
    phone: str | None = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError('Name is required.')
        return normalized

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        if len(value) < 6:
            raise ValueError('Password must be at least 6 characters.')
        return value


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class GoogleLoginRequest(BaseModel):
    email: str
    name: str | None = None
    profileImage: str | None = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class SaveProfileRequest(BaseModel):
    email: str
    name: str | None = None
    phone: str | None = None
    role: str | None = None
    profileImage: str | None = None

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return _normalize_email(value)


class UpdateProfileRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    profileImage: str | None = None


def get_auth_service(db: Database = Depends(get_db)) -> AuthService:
    return AuthService(db)


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    token, user = service.register(
        name=data.name,
        email=data.email,
        password=data.password,
        role=data.role,
        phone=data.phone,
    )
    return {'message': 'User registered successfully', 'token': token, 'user': serialize(user)}


@router.post('/login')
def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    token, user = service.login(data.email, data.password)
    return {'message': 'Login successful', 'token': token, 'user': serialize(user)}


@router.post('/google')
def google_login(data: GoogleLoginRequest, service: AuthService = Depends(get_auth_service)):
    token, user = service.federated_login(data.email, data.name, data.profileImage)
    return {'message': 'Google login successful', 'token': token, 'user': serialize(user)}


@router.post('/save-profile')
def save_profile(
    data: SaveProfileRequest,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    del current_user
    created, user = service.save_profile(
        name=data.name,
        email=data.email,
        phone=data.phone,
        role=data.role,
        profile_image=data.profileImage,
    )
    if created:
        response.status_code = status.HTTP_201_CREATED
        return {'message': 'Profile created', 'user': serialize(user)}
    return {'message': 'Profile updated', 'user': serialize(user)}


@router.get('/me')
def me(
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    return {'user': serialize(service.current_user(current_user.user_id))}


@router.patch('/me')
def update_me(
    data: UpdateProfileRequest,
    current_user: CurrentUser = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
):
    user = service.update_profile(
        current_user.user_id,
        name=data.name,
        phone=data.phone,
        profile_image=data.profileImage,
    )
    return {'message': 'Profile updated successfully', 'user': serialize(user)}
