"""Registration, login and "who am I" endpoints."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from scribe.db.stores import UserStore
from scribe.errors import BadRequestError, UnauthorizedError
from scribe.models import User
from scribe.services.auth import AuthGateway

from .deps import get_auth, get_current_user, get_user_store

router = APIRouter()
logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid credentials"


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserInfo(BaseModel):
    id: str
    name: str
    email: str


class AuthResponse(BaseModel):
    token: str
    user: UserInfo


def _user_info(user: User) -> UserInfo:
    return UserInfo(id=user.id, name=user.name, email=user.email)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    auth: AuthGateway = Depends(get_auth),
    users: UserStore = Depends(get_user_store),
) -> AuthResponse:
    if not body.name or not body.email or not body.password:
        raise BadRequestError("All fields are required")
    if len(body.password) < MIN_PASSWORD_LENGTH:
        raise BadRequestError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if users.get_by_email(body.email) is not None:
        logger.info("Registration rejected: email already in use")
        raise BadRequestError("Email already registered")

    user = users.create(body.name, body.email, auth.hash_secret(body.password))
    return AuthResponse(token=auth.issue_token(user.id), user=_user_info(user))


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    auth: AuthGateway = Depends(get_auth),
    users: UserStore = Depends(get_user_store),
) -> AuthResponse:
    if not body.email or not body.password:
        raise BadRequestError("Email and password are required")

    user = users.get_by_email(body.email)
    if user is None:
        auth.dummy_verify()
        logger.info("Login failed: unknown email")
        raise UnauthorizedError(INVALID_CREDENTIALS)
    if not auth.verify_secret(body.password, user.password_hash):
        logger.info("Login failed: bad password for user %s", user.id)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    logger.info("User %s logged in", user.id)
    return AuthResponse(token=auth.issue_token(user.id), user=_user_info(user))


@router.get("/me", response_model=UserInfo)
async def me(user: User = Depends(get_current_user)) -> UserInfo:
    return _user_info(user)
