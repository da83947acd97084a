"""
Users Management API

- Admin: list, create, read, update and delete any account
- HOD: list users/faculty/students of their own department, assign guides
- Faculty: list the students assigned to them
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.models.user import User, UserRole
from app.modules.auth.dependencies import get_current_admin, get_current_user, require_action
from app.modules.authorization.policy import Action, ensure_authorized
from app.schemas.auth import UserResponse, UserSummary
from app.schemas.user import (
    AdminUserCreate,
    AdminUserUpdate,
    GuideAssignmentResponse,
    UserDeletedResponse,
)
from app.services.user_service import UserService

router = APIRouter()


@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[UserRole] = Query(None, description="Filter by role"),
    branch: Optional[str] = Query(None, description="Filter by department/branch"),
    current_user: User = Depends(require_action(Action.USER_LIST)),
    db: AsyncSession = Depends(get_db)
):
    """All users (admin) or the users of the caller's department (HOD)"""
    return await UserService(db).list_users(current_user, role=role, branch=branch)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    data: AdminUserCreate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).create_user(admin, data)


@router.get("/faculty", response_model=List[UserResponse])
async def list_faculty(
    current_user: User = Depends(require_action(Action.FACULTY_LIST)),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).list_faculty(current_user)


@router.get("/students", response_model=List[UserResponse])
async def list_students(
    branch: Optional[str] = Query(None),
    current_user: User = Depends(require_action(Action.STUDENT_LIST)),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).list_students(current_user, branch=branch)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    current_user: User = Depends(require_action(Action.USER_READ)),
    db: AsyncSession = Depends(get_db)
):
    user = await UserService(db).require(user_id)
    ensure_authorized(current_user, Action.USER_READ, user)
    return user


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: AdminUserUpdate,
    admin: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).update_user(admin, user_id, data.model_dump(exclude_unset=True))


@router.delete("/{user_id}", response_model=UserDeletedResponse)
async def delete_user(
    user_id: str,
    current_user: User = Depends(require_action(Action.USER_DELETE)),
    db: AsyncSession = Depends(get_db)
):
    """
    Delete an account. References held by other records are cleared
    (see UserService.delete_user); the ids of projects left without a guide
    are returned so they can be reassigned.
    """
    detached = await UserService(db).delete_user(current_user, user_id)
    return UserDeletedResponse(message="User removed", detached_projects=detached)


@router.put("/{student_id}/assign-guide/{guide_id}", response_model=GuideAssignmentResponse)
async def assign_guide(
    student_id: str,
    guide_id: str,
    current_user: User = Depends(require_action(Action.USER_ASSIGN_GUIDE)),
    db: AsyncSession = Depends(get_db)
):
    student, guide = await UserService(db).assign_guide(current_user, student_id, guide_id)
    return GuideAssignmentResponse(
        message="Guide assigned successfully",
        student=UserResponse.model_validate(student),
        guide=UserSummary.model_validate(guide),
    )
