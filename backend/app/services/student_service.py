"""
Student Service Layer
Read models behind the student dashboard and /students routes.
"""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import UserNotFoundError
from app.models import Meeting, MeetingStatus, Notification, Progress, User
from app.modules.authorization.policy import Action, ensure_authorized
from app.services.evaluation_service import EvaluationService
from app.services.project_service import ProjectService
from app.services.user_service import UserService

NOTIFICATION_WINDOW_DAYS = 30
# Meetings still expected to happen
OPEN_MEETING_STATUSES = (MeetingStatus.SCHEDULED, MeetingStatus.RESCHEDULED, MeetingStatus.PENDING)


def month_start(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


class StudentService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserService(db)
        self.projects = ProjectService(db)
        self.evaluations = EvaluationService(db)

    async def dashboard(self, student: User) -> Dict[str, Any]:
        ensure_authorized(student, Action.STUDENT_SELF_SERVICE)
        now = datetime.utcnow()

        projects = await self.projects.list_student_projects(student)
        meetings = await self.db.execute(
            select(Meeting)
            .where(
                Meeting.student_id == student.id,
                Meeting.scheduled_date >= now,
                Meeting.status.in_(OPEN_MEETING_STATUSES),
            )
            .order_by(Meeting.scheduled_date)
        )
        notifications = await self.db.execute(
            select(Notification)
            .where(
                Notification.recipient_id == student.id,
                Notification.created_at >= now - timedelta(days=NOTIFICATION_WINDOW_DAYS),
            )
            .order_by(Notification.created_at.desc())
        )
        progress = await self.db.execute(
            select(Progress)
            .where(Progress.student_id == student.id, Progress.created_at >= month_start(now))
            .order_by(Progress.created_at.desc())
        )
        return {
            "projects": projects,
            "upcoming_meetings": list(meetings.scalars().all()),
            "guide": await self.guide(student),
            "notifications": list(notifications.scalars().all()),
            "progress_this_month": list(progress.scalars().all()),
        }

    async def guide(self, student: User) -> Optional[User]:
        if not student.assigned_guide_id:
            return None
        return await self.users.get(student.assigned_guide_id)

    async def require_guide(self, student: User) -> User:
        guide = await self.guide(student)
        if not guide:
            raise UserNotFoundError("guide")
        return guide

    async def meetings(self, student: User) -> List[Meeting]:
        result = await self.db.execute(
            select(Meeting).where(Meeting.student_id == student.id).order_by(Meeting.meeting_number)
        )
        return list(result.scalars().all())

    async def progress(self, student: User, project_id: str) -> List[Progress]:
        return await self.projects.list_progress(student, project_id)

    async def evaluations_for(self, student: User):
        return await self.evaluations.list_for_student(student)

    async def final_submission_status(self, student: User, project_id: str) -> Dict[str, Any]:
        project = await self.projects.get_for(student, project_id)
        submission = await self.projects.latest_submission(student, project.id)
        return {"project": project, "submission": submission}
