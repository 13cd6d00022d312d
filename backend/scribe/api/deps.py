"""FastAPI dependency providers.

Everything comes from ``app.state``, populated once by
:func:`scribe.main.create_app`.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Header, Request

from scribe.config import Settings
from scribe.db.stores import UserStore
from scribe.errors import UnauthorizedError
from scribe.models import User
from scribe.services.auth import AuthGateway
from scribe.services.orchestrator import JobOrchestrator
from scribe.utils.storage import BlobStore

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_auth(request: Request) -> AuthGateway:
    return request.app.state.auth


def get_user_store(request: Request) -> UserStore:
    return request.app.state.users


def get_blob_store(request: Request) -> BlobStore:
    return request.app.state.blobs


def get_orchestrator(request: Request) -> JobOrchestrator:
    return request.app.state.orchestrator


async def get_current_user(
    authorization: Optional[str] = Header(None),
    auth: AuthGateway = Depends(get_auth),
    users: UserStore = Depends(get_user_store),
) -> User:
    """Resolve the bearer token to a stored user or fail with a bare 401."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise UnauthorizedError()
    user_id = auth.resolve_caller(authorization[len(BEARER_PREFIX):])
    user = users.get(user_id) if user_id else None
    if user is None:
        raise UnauthorizedError()
    return user
