"""
Faculty API Endpoints

- Students assigned to the caller, each with their latest project
- Evaluations: submit (upsert per student + evaluation type) and list own
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import require_action
from app.modules.authorization.policy import Action
from app.schemas.auth import UserResponse, UserSummary
from app.schemas.evaluation import EvaluationCreate, EvaluationResponse
from app.schemas.project import ProjectResponse
from app.schemas.user import StudentOverview
from app.services.evaluation_service import EvaluationService
from app.services.user_service import UserService

router = APIRouter(tags=["Faculty"])


@router.get("/students", response_model=List[StudentOverview])
async def assigned_students(
    current_user: User = Depends(require_action(Action.ASSIGNED_STUDENTS_READ)),
    db: AsyncSession = Depends(get_db)
):
    """Students whose guide is the caller. Empty list when there are none."""
    rows = await UserService(db).assigned_students(current_user)
    guide = UserSummary.model_validate(current_user)
    return [
        StudentOverview(
            student=UserResponse.model_validate(student),
            guide=guide,
            project=ProjectResponse.model_validate(project) if project else None,
        )
        for student, project in rows
    ]


@router.post("/evaluations/{student_id}", response_model=EvaluationResponse)
async def submit_evaluation(
    student_id: str,
    data: EvaluationCreate,
    current_user: User = Depends(require_action(Action.EVALUATION_WRITE)),
    db: AsyncSession = Depends(get_db)
):
    """
    Create or update the caller's evaluation of a student for the given type.
    The overall grade is derived from the mean of the five scores.
    """
    return await EvaluationService(db).submit(current_user, student_id, data)


@router.get("/evaluations", response_model=List[EvaluationResponse])
async def my_evaluations(
    current_user: User = Depends(require_action(Action.EVALUATION_WRITE)),
    db: AsyncSession = Depends(get_db)
):
    return await EvaluationService(db).list_for_evaluator(current_user)
