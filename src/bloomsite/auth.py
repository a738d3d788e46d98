import logging
from datetime import UTC, datetime, timedelta

import jwt
from fastapi import Request
from pydantic import BaseModel

from .config import JWT_ALGORITHM, JWT_SECRET, SESSION_TTL_MINUTES
from .errors import AuthenticationError

logger = logging.getLogger(__name__)


class SessionUser(BaseModel):
    id: str


class Session(BaseModel):
    user: SessionUser


def create_token(user_id: str, expires_minutes: int = SESSION_TTL_MINUTES) -> str:
    """Issue a signed session token for user_id."""
    now = datetime.now(UTC)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_token(token: str) -> dict | None:
    """Decode and validate a session token, returning None if it is invalid or expired."""
    try:
        return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired session token")
        return None
    except jwt.InvalidTokenError:
        return None


async def get_session(request: Request) -> Session:
    """FastAPI dependency resolving the caller's session from the Authorization header."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        raise AuthenticationError("Unauthorized")

    payload = decode_token(auth_header[7:])
    if not payload or not payload.get("sub"):
        raise AuthenticationError("Unauthorized")
    return Session(user=SessionUser(id=str(payload["sub"])))
