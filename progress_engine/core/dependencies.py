"""Shared dependencies for the Progress Engine API."""

from typing import Optional
from datetime import datetime, timedelta, timezone

import structlog
from jose import jwt, JWTError
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from progress_engine.core.config import settings
from progress_engine.progress.session import LearnerSession, SessionRegistry

logger = structlog.get_logger()

# Security
security = HTTPBearer()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    """Create JWT access token."""
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)

    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)
    return encoded_jwt


async def get_current_learner(credentials: HTTPAuthorizationCredentials = Depends(security)) -> str:
    """Get the learner id from the bearer token."""
    token = credentials.credentials

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    learner_id: Optional[str] = payload.get("sub")
    if learner_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return learner_id


async def get_registry(request: Request) -> SessionRegistry:
    """Session registry created at startup."""
    return request.app.state.sessions


async def get_learner_session(
    learner_id: str = Depends(get_current_learner),
    registry: SessionRegistry = Depends(get_registry)
) -> LearnerSession:
    """Session of the authenticated learner."""
    return registry.get(learner_id)
