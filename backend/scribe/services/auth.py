"""Bearer-token issuance and password hashing."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

logger = logging.getLogger(__name__)

BCRYPT_ROUNDS = 10
USER_ID_CLAIM = "userId"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


class AuthGateway:
    """Issues and validates signed tokens and handles password hashes.

    Every verification failure collapses into ``None``/``False``; callers
    only ever learn "unauthorized".
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expire_days: int = 7) -> None:
        if not secret:
            raise ValueError("A signing secret is required")
        self._secret = secret
        self._algorithm = algorithm
        self._expire = timedelta(days=expire_days)

    def issue_token(self, user_id: str) -> str:
        """Creates a new JWT access token for ``user_id``."""
        expire = datetime.now(timezone.utc) + self._expire
        token = jwt.encode({USER_ID_CLAIM: user_id, "exp": expire}, self._secret, algorithm=self._algorithm)
        logger.debug("Issued token for user %s", user_id)
        return token

    def resolve_caller(self, token: Optional[str]) -> Optional[str]:
        """
        Decodes a JWT token to get the user id.
        Returns the id if the token is valid, otherwise returns None.
        """
        if not token:
            return None
        try:
            payload = jwt.decode(token, self._secret, algorithms=[self._algorithm])
        except JWTError as exc:
            logger.info("Rejected bearer token: %s", exc.__class__.__name__)
            return None
        user_id = payload.get(USER_ID_CLAIM)
        if not isinstance(user_id, str) or not user_id:
            logger.info("Rejected bearer token: missing %s claim", USER_ID_CLAIM)
            return None
        return user_id

    @staticmethod
    def hash_secret(plaintext: str) -> str:
        return pwd_context.hash(plaintext)

    @staticmethod
    def verify_secret(plaintext: str, hashed: str) -> bool:
        """Checks if a plain password matches a hashed one."""
        try:
            return pwd_context.verify(plaintext, hashed)
        except (ValueError, TypeError):
            logger.warning("Stored password hash could not be parsed")
            return False

    @staticmethod
    def dummy_verify() -> None:
        """Burn the same time as a real verify for an unknown account."""
        pwd_context.dummy_verify()
