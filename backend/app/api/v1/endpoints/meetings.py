"""
Meetings API

Guides schedule numbered meetings (1-4) per project; posting the same
project + number again reschedules the existing meeting.
"""
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, require_action
from app.modules.authorization.policy import Action
from app.schemas.meeting import (
    MeetingCreate,
    MeetingResponse,
    MeetingStatusUpdate,
    StudentPointsUpdate,
    TaskStatusUpdate,
    TasksUpdate,
)
from app.services.meeting_service import MeetingService

router = APIRouter()


@router.post("", response_model=MeetingResponse, status_code=status.HTTP_201_CREATED)
async def schedule_meeting(
    data: MeetingCreate,
    response: Response,
    current_user: User = Depends(require_action(Action.MEETING_SCHEDULE)),
    db: AsyncSession = Depends(get_db)
):
    """201 when the meeting is new, 200 when an existing one was rescheduled"""
    meeting, created = await MeetingService(db).schedule(current_user, data)
    if not created:
        response.status_code = status.HTTP_200_OK
    return meeting


@router.get("", response_model=List[MeetingResponse])
async def list_meetings(
    project_id: Optional[str] = Query(None, alias="projectId"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await MeetingService(db).list_meetings(current_user, project_id)


@router.get("/department", response_model=List[MeetingResponse])
async def department_meetings(
    current_user: User = Depends(require_action(Action.MEETING_LIST_DEPARTMENT)),
    db: AsyncSession = Depends(get_db)
):
    return await MeetingService(db).list_department(current_user)


@router.get("/{meeting_id}", response_model=MeetingResponse)
async def get_meeting(
    meeting_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return await MeetingService(db).get_for(current_user, meeting_id)


@router.put("/{meeting_id}/status", response_model=MeetingResponse)
async def update_meeting_status(
    meeting_id: str,
    data: MeetingStatusUpdate,
    current_user: User = Depends(require_action(Action.MEETING_UPDATE_STATUS)),
    db: AsyncSession = Depends(get_db)
):
    changes = data.model_dump(exclude_unset=True)
    return await MeetingService(db).update_status(current_user, meeting_id, changes)


@router.put("/{meeting_id}/student-points", response_model=MeetingResponse)
async def update_student_points(
    meeting_id: str,
    data: StudentPointsUpdate,
    current_user: User = Depends(require_action(Action.MEETING_UPDATE_STUDENT_POINTS)),
    db: AsyncSession = Depends(get_db)
):
    return await MeetingService(db).update_student_points(
        current_user, meeting_id, data.student_discussion_points
    )


@router.put("/{meeting_id}/tasks", response_model=MeetingResponse)
async def replace_tasks(
    meeting_id: str,
    data: TasksUpdate,
    current_user: User = Depends(require_action(Action.MEETING_MANAGE_TASKS)),
    db: AsyncSession = Depends(get_db)
):
    return await MeetingService(db).replace_tasks(current_user, meeting_id, data.tasks)


@router.put("/{meeting_id}/tasks/{task_id}", response_model=MeetingResponse)
async def update_task(
    meeting_id: str,
    task_id: str,
    data: TaskStatusUpdate,
    current_user: User = Depends(require_action(Action.MEETING_MANAGE_TASKS)),
    db: AsyncSession = Depends(get_db)
):
    return await MeetingService(db).update_task(current_user, meeting_id, task_id, data.status)
