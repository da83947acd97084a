"""
Student API Endpoints
Self-service views for the logged-in student.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_current_student
from app.schemas.auth import UserSummary
from app.schemas.common import MessageResponse
from app.schemas.dashboard import FinalSubmissionStatus, StudentDashboard
from app.schemas.evaluation import EvaluationResponse
from app.schemas.meeting import MeetingResponse
from app.schemas.notification import NotificationResponse
from app.schemas.project import ProgressResponse, ProjectResponse
from app.services.notification_service import NotificationService
from app.services.project_service import ProjectService
from app.services.student_service import StudentService

router = APIRouter(tags=["Students"])


@router.get("/dashboard", response_model=StudentDashboard)
async def dashboard(
    student: User = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    """Projects, upcoming meetings, guide, last 30 days of notifications, this month's progress"""
    return await StudentService(db).dashboard(student)


@router.get("/guide", response_model=UserSummary)
async def my_guide(
    student: User = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).require_guide(student)


@router.get("/projects", response_model=List[ProjectResponse])
async def my_projects(
    student: User = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await ProjectService(db).list_student_projects(student)


@router.get("/meetings", response_model=List[MeetingResponse])
async def my_meetings(
    student: User = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).meetings(student)


@router.get("/notifications", response_model=List[NotificationResponse])
async def my_notifications(
    student: User = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await NotificationService(db).list_for(student)


@router.patch("/notifications/all/read", response_model=MessageResponse)
async def read_all_notifications(
    student: User = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    count = await NotificationService(db).mark_all_read(student)
    return MessageResponse(message=f"{count} notifications marked as read")


@router.patch("/notifications/{notification_id}/read", response_model=NotificationResponse)
async def read_notification(
    notification_id: str,
    student: User = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await NotificationService(db).mark_read(student, notification_id)


@router.get("/progress/{project_id}", response_model=List[ProgressResponse])
async def my_progress(
    project_id: str,
    student: User = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).progress(student, project_id)


@router.get("/evaluation", response_model=List[EvaluationResponse])
async def my_evaluations(
    student: User = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).evaluations_for(student)


@router.get("/final-submission/{project_id}", response_model=FinalSubmissionStatus)
async def final_submission_status(
    project_id: str,
    student: User = Depends(get_current_student),
    db: AsyncSession = Depends(get_db)
):
    return await StudentService(db).final_submission_status(student, project_id)
