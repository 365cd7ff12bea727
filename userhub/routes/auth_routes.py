import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from userhub.auth import credentials
from userhub.auth.dependencies import authenticate
from userhub.dependencies import get_db
from userhub.errors import InvalidCredentialsError
from userhub.routes.user_routes import MIN_NAME_LENGTH

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


class RegisterRequest(BaseModel):
    email: str
    password: str
    name: str = Field(min_length=MIN_NAME_LENGTH)

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


def registration_error(message: str) -> JSONResponse:
    # Failures answer 200 with an error body; clients already depend on it.
    return JSONResponse(status_code=status.HTTP_200_OK, content={'error': message})


def describe_validation_error(exc: ValidationError) -> str:
    return '; '.join(
        f"{'.'.join(str(part) for part in error['loc']) or 'body'}: {error['msg']}" for error in exc.errors()
    )


@router.post('/register', status_code=status.HTTP_201_CREATED)
def register(body: Any = Body(None), db: Session = Depends(get_db)):
    try:
        payload = RegisterRequest.model_validate(body)
    except ValidationError as exc:
        logger.info('Rejected registration body: %s', exc)
        return registration_error(describe_validation_error(exc))

    try:
        user = credentials.register_user(db, payload.email, payload.password, payload.name)
    except Exception as exc:
        logger.exception('Registration failed for %s', payload.email)
        message = 'Email already registered' if isinstance(exc, IntegrityError) else 'Could not register user'
        return registration_error(message)
    return {'message': 'User registered successfully', 'user': user}


@router.post('/login')
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    try:
        token = credentials.login_user(db, payload.email, payload.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return {'token': token}


@router.get('/protected-route')
def protected_route(claims: dict = Depends(authenticate)):
    return {'message': 'This is a protected route, welcome!', 'user': claims}
