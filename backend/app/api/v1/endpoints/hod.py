"""
HOD API Endpoints
Department-scoped views for heads of department.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import require_action
from app.modules.authorization.policy import Action
from app.schemas.auth import UserResponse
from app.schemas.user import StudentDetails
from app.services.user_service import UserService

router = APIRouter(tags=["HOD"])


@router.get("/students/{student_id}", response_model=StudentDetails)
async def student_details(
    student_id: str,
    current_user: User = Depends(require_action(Action.STUDENT_DETAILS)),
    db: AsyncSession = Depends(get_db)
):
    """One student of the caller's department with guide, projects and evaluations"""
    return await UserService(db).student_details(current_user, student_id)


@router.get("/faculty", response_model=List[UserResponse])
async def department_faculty(
    current_user: User = Depends(require_action(Action.FACULTY_LIST)),
    db: AsyncSession = Depends(get_db)
):
    return await UserService(db).list_faculty(current_user)
