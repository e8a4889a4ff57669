"""Authentication dependencies for FastAPI."""
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from sqlalchemy.orm import Session as DbSession

from quiz_api.config import ALGORITHM, SECRET_KEY
from quiz_api.database import get_db
from quiz_api.models.db.user import User

# HTTP Bearer scheme for JWT
security = HTTPBearer(auto_error=False)


def verify_token(token: str) -> dict | None:
    """Verify and decode a JWT token.

    Returns:
        Decoded token payload or None if invalid.
    """
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


def _resolve_user(
    credentials: HTTPAuthorizationCredentials | None, db: DbSession
) -> tuple[User | None, str | None]:
    """Resolve bearer credentials to a user, or a reason why not."""
    if credentials is None:
        return None, "Not authenticated"

    payload = verify_token(credentials.credentials)
    if payload is None:
        return None, "Invalid or expired token"

    user_id = payload.get("sub")
    if user_id is None:
        return None, "Invalid token payload"

    user = db.get(User, str(user_id))
    if user is None:
        return None, "User not found"

    return user, None


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[DbSession, Depends(get_db)],
) -> User:
    """Get the current authenticated user.

    Raises:
        HTTPException: 401 if not authenticated or token is invalid.
    """
    user, reason = _resolve_user(credentials, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=reason,
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[DbSession, Depends(get_db)],
) -> User | None:
    """Get the current user if authenticated, otherwise None.

    This dependency does not raise an exception if not authenticated.
    """
    user, _ = _resolve_user(credentials, db)
    return user
