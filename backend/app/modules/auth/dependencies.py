from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional

from app.core.database import get_db
from app.core.exceptions import AuthenticationError, InvalidTokenError
from app.core.logging_config import set_user_id
from app.core.security import decode_token
from app.core.types import is_valid_id
from app.models.user import User
from app.modules.authorization.policy import Action, ensure_authorized

# auto_error=False so a missing header becomes our 401 instead of FastAPI's 403
security = HTTPBearer(auto_error=False)


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Resolve the bearer token to a User"""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError()

    payload = decode_token(credentials.credentials)
    user_id = payload["sub"]

    if not is_valid_id(user_id):
        raise InvalidTokenError("Invalid user ID format")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise InvalidTokenError("User not found")

    set_user_id(str(user.id))
    request.state.user_id = str(user.id)
    return user


def require_action(action: Action):
    """
    Route-level gate: the caller's role must appear in at least one rule for
    `action`. Ownership/department checks happen once the resource is loaded.

    Usage:
        @router.get("/faculty")
        async def list_faculty(current_user: User = Depends(require_action(Action.FACULTY_LIST))):
            ...
    """
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        ensure_authorized(current_user, action, role_only=True)
        return current_user

    return dependency


async def get_current_admin(
    current_user: User = Depends(get_current_user)
) -> User:
    return await require_action(Action.USER_UPDATE)(current_user)


async def get_current_student(
    current_user: User = Depends(get_current_user)
) -> User:
    return await require_action(Action.STUDENT_SELF_SERVICE)(current_user)
