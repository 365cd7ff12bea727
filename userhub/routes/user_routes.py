import logging
from enum import Enum

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from userhub.dependencies import get_db_user_store, get_user_store
from userhub.errors import (
    RecordValidationError,
    StorageError,
    UserConflictError,
    UserNotFoundError,
)
from userhub.models.user import ROLE_ADMIN, ROLE_USER
from userhub.stores.base import UserStore

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 3


class Role(str, Enum):
    USER = ROLE_USER
    ADMIN = ROLE_ADMIN


def normalize_email(value: str | None) -> str | None:
    if value is None:
        return None
    return value.strip().lower()


def reject_bool(value):
    # JSON true/false would otherwise be coerced to 1/0.
    if isinstance(value, bool):
        raise ValueError('Input should be a valid integer')
    return value


class UserCreate(BaseModel):
    model_config = ConfigDict(extra='allow', use_enum_values=True)

    id: int
    name: str = Field(min_length=MIN_NAME_LENGTH)
    email: EmailStr | None = None
    role: Role = Role.USER

    @field_validator('id', mode='before')
    @classmethod
    def reject_bool_id(cls, value):
        return reject_bool(value)

    @field_validator('email', mode='after')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return normalize_email(value)

    def to_record(self) -> dict:
        record = self.model_dump(exclude_unset=True)
        if record.get('email') is None:
            record.pop('email', None)
        record.setdefault('role', Role.USER.value)
        return record


class UserUpdate(BaseModel):
    model_config = ConfigDict(extra='allow', use_enum_values=True)

    id: int | None = None
    name: str | None = Field(default=None, min_length=MIN_NAME_LENGTH)
    email: EmailStr | None = None
    role: Role | None = None

    @field_validator('id', mode='before')
    @classmethod
    def reject_bool_id(cls, value):
        return reject_bool(value)

    @field_validator('id', 'name', 'role')
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError('Field cannot be null')
        return value

    @field_validator('email', mode='after')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return normalize_email(value)

    def to_changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


def storage_failure(exc: StorageError) -> HTTPException:
    logger.error('User storage failure: %s', exc)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


@router.get('/users')
def list_users(store: UserStore = Depends(get_user_store)):
    try:
        return store.list_users()
    except StorageError as exc:
        raise storage_failure(exc) from exc


@router.post('/users', status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, store: UserStore = Depends(get_user_store)):
    try:
        return store.create_user(payload.to_record())
    except (RecordValidationError, UserConflictError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise storage_failure(exc) from exc


@router.put('/users/{user_id}')
def update_user(user_id: int, payload: UserUpdate, store: UserStore = Depends(get_user_store)):
    try:
        return store.update_user(user_id, payload.to_changes())
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except UserConflictError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise storage_failure(exc) from exc


@router.delete('/users/delete/{user_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: int, store: UserStore = Depends(get_user_store)):
    try:
        store.delete_user(user_id)
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except StorageError as exc:
        raise storage_failure(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get('/db-users')
def list_db_users(store: UserStore = Depends(get_db_user_store)):
    try:
        return store.list_users()
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Could not communicate with the database',
        ) from exc
