from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import ConfigDict, EmailStr, Field, field_validator
from sqlalchemy.orm import Session

from taskapi.auth.dependencies import get_current_user, get_password_hasher, get_token_codec
from taskapi.auth.jwt_handler import TokenCodec
from taskapi.auth.passwords import PasswordHasher
from taskapi.core.responses import success_response
from taskapi.core.schemas import CamelModel
from taskapi.database import get_db
from taskapi.entities import UserRecord
from taskapi.repositories.user_repository import UserRepository
from taskapi.services.account_service import AccountService, AuthSession
from taskapi.validation import (
    check_password_strength,
    clean_email,
    clean_name,
    require_password,
    strip_text,
)

router = APIRouter(tags=['auth'])


def _require_email(value):
    value = strip_text(value)
    if not value:
        raise ValueError('Email is required')
    return value


class RegisterRequest(CamelModel):
    name: str = Field(default='', validate_default=True)
    email: EmailStr = Field(default='', validate_default=True)
    password: str = Field(default='', validate_default=True)

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return clean_name(value)

    @field_validator('email', mode='before')
    @classmethod
    def require_email(cls, value):
        return _require_email(value)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password_strength(value)


class LoginRequest(CamelModel):
    email: EmailStr = Field(default='', validate_default=True)
    password: str = Field(default='', validate_default=True)

    @field_validator('email', mode='before')
    @classmethod
    def require_email(cls, value):
        return _require_email(value)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return clean_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return require_password(value)


class UpdateProfileRequest(CamelModel):
    name: str | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        if not value.strip():
            raise ValueError('Name cannot be empty')
        return clean_name(value)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class UserResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    active: bool
    role: str | None = None
    last_access: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


def user_payload(user: UserRecord) -> dict:
    return UserResponse.model_validate(user).model_dump(mode='json', by_alias=True)


def session_payload(session: AuthSession) -> dict:
    return {
        'user': user_payload(session.user),
        'token': session.token,
        'refreshToken': session.refresh_token,
    }


def get_account_service(
    db: Session = Depends(get_db),
    codec: TokenCodec = Depends(get_token_codec),
    hasher: PasswordHasher = Depends(get_password_hasher),
) -> AccountService:
    return AccountService(UserRepository(db), codec, hasher)


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, service: AccountService = Depends(get_account_service)):
    session = service.register(data.name, data.email, data.password)
    return success_response(session_payload(session), 'User registered successfully')


@router.post('/login')
def login(data: LoginRequest, service: AccountService = Depends(get_account_service)):
    session = service.login(data.email, data.password)
    return success_response(session_payload(session), 'Session started successfully')


@router.post('/refresh')
def refresh(data: RefreshRequest, service: AccountService = Depends(get_account_service)):
    token = service.refresh(data.refresh_token)
    return success_response({'token': token}, 'Token refreshed successfully')


@router.get('/profile')
def profile(
    current_user: UserRecord = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    return success_response({'user': user_payload(service.get_profile(current_user))})


@router.put('/profile')
def update_profile(
    data: UpdateProfileRequest,
    current_user: UserRecord = Depends(get_current_user),
    service: AccountService = Depends(get_account_service),
):
    user = service.update_profile(current_user, name=data.name)
    return success_response({'user': user_payload(user)}, 'Profile updated successfully')
