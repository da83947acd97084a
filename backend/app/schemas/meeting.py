from pydantic import Field
from typing import Optional, List
from datetime import datetime

from app.models.meeting import (
    MeetingStatus,
    TaskStatus,
    MIN_MEETING_NUMBER,
    MAX_MEETING_NUMBER,
    MIN_DURATION_MINUTES,
    MAX_DURATION_MINUTES,
)
from app.schemas.common import RequestModel, ORMModel


class MeetingCreate(RequestModel):
    project_id: str
    student_id: Optional[str] = None
    title: Optional[str] = Field(None, max_length=255)
    meeting_number: int = Field(..., ge=MIN_MEETING_NUMBER, le=MAX_MEETING_NUMBER)
    scheduled_date: datetime
    notes: Optional[str] = None
    meeting_type: Optional[str] = Field(None, max_length=50)
    duration_minutes: Optional[int] = Field(None, ge=MIN_DURATION_MINUTES, le=MAX_DURATION_MINUTES)


class MeetingStatusUpdate(RequestModel):
    status: MeetingStatus
    feedback: Optional[str] = None
    meeting_summary: Optional[str] = None
    guide_remarks: Optional[str] = None


class StudentPointsUpdate(RequestModel):
    student_discussion_points: str = Field(..., min_length=1)


class TaskIn(RequestModel):
    description: str = Field(..., min_length=1)
    status: TaskStatus = TaskStatus.PENDING


class TasksUpdate(RequestModel):
    tasks: List[TaskIn]


class TaskStatusUpdate(RequestModel):
    status: TaskStatus


class MeetingTask(ORMModel):
    id: str
    description: str
    status: TaskStatus


class MeetingResponse(ORMModel):
    id: str
    title: str
    meeting_number: int
    scheduled_date: datetime
    status: MeetingStatus
    project_id: str
    student_id: str
    faculty_id: Optional[str] = None
    department: Optional[str] = None
    meeting_type: str
    duration_minutes: int
    notes: Optional[str] = None
    student_discussion_points: Optional[str] = None
    meeting_summary: Optional[str] = None
    guide_remarks: Optional[str] = None
    feedback: Optional[str] = None
    tasks: List[MeetingTask] = []
    created_at: datetime
    updated_at: Optional[datetime] = None
