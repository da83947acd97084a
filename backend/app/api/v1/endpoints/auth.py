from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.logging_config import logger
from app.core.rate_limiter import auth_rate_limit
from app.core.security import create_user_token
from app.core.exceptions import DissertoError
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.auth import (
    AdminBootstrap,
    AuthResponse,
    ProfileUpdate,
    UserLogin,
    UserRegister,
    UserResponse,
)
from app.services.user_service import UserService

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(access_token=create_user_token(user), user=UserResponse.model_validate(user))


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@auth_rate_limit()
async def register(
    request: Request,
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db)
):
    """Register a student, faculty or HOD account and return a token"""
    try:
        user = await UserService(db).register(user_data)
    except DissertoError as e:
        logger.log_auth_event(
            event="register",
            success=False,
            user_email=user_data.email,
            reason=e.message,
            client_ip=_client_ip(request)
        )
        raise

    logger.log_auth_event(
        event="register",
        success=True,
        user_email=user.email,
        client_ip=_client_ip(request),
        user_role=user.role.value
    )
    return _auth_response(user)


@router.post("/login", response_model=AuthResponse)
@auth_rate_limit()
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Exchange email + password for a bearer token"""
    try:
        user = await UserService(db).authenticate(credentials.email, credentials.password)
    except DissertoError:
        logger.log_auth_event(
            event="login",
            success=False,
            user_email=credentials.email,
            reason="Invalid credentials",
            client_ip=_client_ip(request)
        )
        raise

    logger.log_auth_event(event="login", success=True, user_email=user.email, client_ip=_client_ip(request))
    return _auth_response(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_me(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update own profile. The role cannot be changed here."""
    changes = profile.model_dump(exclude_unset=True)
    return await UserService(db).update_profile(current_user, changes)


@router.post("/admin", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@auth_rate_limit()
async def bootstrap_admin(
    request: Request,
    data: AdminBootstrap,
    db: AsyncSession = Depends(get_db)
):
    """Create the first admin account. Refused once an admin exists."""
    user = await UserService(db).bootstrap_admin(data.email, data.password, data.full_name)
    logger.log_auth_event(event="admin_bootstrap", success=True, user_email=user.email,
                          client_ip=_client_ip(request))
    return _auth_response(user)
