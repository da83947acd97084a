"""
Meeting Service Layer

Meetings are numbered 1-4 per project. Scheduling an existing
(project, meeting_number) pair reschedules that meeting instead of creating
a second one, so a retried request converges on the same row.
"""

import uuid
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import MeetingNotFoundError, TaskNotFoundError, ValidationError
from app.core.logging_config import logger
from app.core.types import is_valid_id
from app.models import Meeting, MeetingStatus, TaskStatus, User, UserRole
from app.modules.authorization.policy import Action, ensure_authorized, ensure_fields_allowed
from app.modules.lifecycle.events import MeetingRescheduled, MeetingScheduled
from app.modules.notifications.dispatcher import NotificationDispatcher
from app.services.project_service import ProjectService

DEFAULT_MEETING_TYPE = "in-person"
DEFAULT_DURATION_MINUTES = 30


class MeetingService:
    """Service for guide/student meetings"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.projects = ProjectService(db)
        self.notifier = NotificationDispatcher(db)

    async def get(self, meeting_id: str) -> Meeting:
        if not is_valid_id(meeting_id):
            raise MeetingNotFoundError(meeting_id)
        result = await self.db.execute(select(Meeting).where(Meeting.id == str(meeting_id)))
        meeting = result.scalar_one_or_none()
        if not meeting:
            raise MeetingNotFoundError(meeting_id)
        return meeting

    async def get_for(self, actor: User, meeting_id: str, action: Action = Action.MEETING_READ) -> Meeting:
        meeting = await self.get(meeting_id)
        ensure_authorized(actor, action, meeting)
        return meeting

    async def _find(self, project_id: str, meeting_number: int) -> Optional[Meeting]:
        result = await self.db.execute(
            select(Meeting).where(Meeting.project_id == project_id, Meeting.meeting_number == meeting_number)
        )
        return result.scalar_one_or_none()

    # =====================================================
    # SCHEDULING
    # =====================================================

    async def schedule(self, actor: User, data) -> Tuple[Meeting, bool]:
        """
        Create or reschedule meeting `data.meeting_number` of a project.
        Returns (meeting, created).
        """
        project = await self.projects.get(data.project_id)
        ensure_authorized(actor, Action.MEETING_SCHEDULE, project)
        if data.student_id and data.student_id != project.student_id:
            raise ValidationError("Student does not belong to this project", field="studentId")

        # plain values survive the rollback below
        faculty_id, guide_name = actor.id, actor.full_name
        project_id, project_title = project.id, project.title
        student_id, department = project.student_id, project.department

        meeting = await self._find(project_id, data.meeting_number)
        created = meeting is None
        if created:
            meeting = Meeting(
                project_id=project_id,
                student_id=student_id,
                faculty_id=faculty_id,
                department=department,
                meeting_number=data.meeting_number,
                status=MeetingStatus.SCHEDULED,
                tasks=[],
            )
            self._apply_schedule(meeting, data)
            self.db.add(meeting)
            try:
                await self.db.commit()
            except IntegrityError:
                # Lost a race with a concurrent create of the same pair
                await self.db.rollback()
                meeting = await self._find(project_id, data.meeting_number)
                if meeting is None:
                    raise
                created = False

        if not created:
            self._apply_schedule(meeting, data)
            meeting.faculty_id = faculty_id
            meeting.status = MeetingStatus.RESCHEDULED
            await self.db.commit()

        await self.db.refresh(meeting)
        logger.info(
            f"[Meetings] Meeting {meeting.meeting_number} of project {project_id} "
            f"{'scheduled' if created else 'rescheduled'} for {meeting.scheduled_date}",
            extra={"event_type": "meeting_scheduled", "meeting_id": meeting.id, "created": created},
        )

        event_class = MeetingScheduled if created else MeetingRescheduled
        result = await self.notifier.dispatch(event_class(
            meeting_id=meeting.id,
            meeting_number=meeting.meeting_number,
            scheduled_date=meeting.scheduled_date,
            project_title=project_title,
            student_id=meeting.student_id,
            guide_name=guide_name,
        ))
        if not result.ok:
            await self.db.refresh(meeting)
        return meeting, created

    @staticmethod
    def _apply_schedule(meeting: Meeting, data) -> None:
        meeting.scheduled_date = data.scheduled_date
        meeting.title = data.title or meeting.title or f"Meeting {data.meeting_number}"
        if data.notes is not None:
            meeting.notes = data.notes
        meeting.meeting_type = data.meeting_type or meeting.meeting_type or DEFAULT_MEETING_TYPE
        meeting.duration_minutes = data.duration_minutes or meeting.duration_minutes or DEFAULT_DURATION_MINUTES

    # =====================================================
    # LISTINGS
    # =====================================================

    async def list_meetings(self, actor: User, project_id: Optional[str] = None) -> List[Meeting]:
        """Students see their meetings, faculty the ones they run, HOD their department, admin all"""
        query = select(Meeting)
        if actor.role == UserRole.STUDENT:
            query = query.where(Meeting.student_id == actor.id)
        elif actor.role == UserRole.FACULTY:
            query = query.where(Meeting.faculty_id == actor.id)
        elif actor.role == UserRole.HOD:
            query = query.where(Meeting.department.in_(list(actor.department_keys)))
        if project_id:
            query = query.where(Meeting.project_id == project_id)
        result = await self.db.execute(query.order_by(Meeting.scheduled_date, Meeting.meeting_number))
        return list(result.scalars().all())

    async def list_department(self, actor: User) -> List[Meeting]:
        ensure_authorized(actor, Action.MEETING_LIST_DEPARTMENT, role_only=True)
        result = await self.db.execute(
            select(Meeting)
            .where(Meeting.department.in_(list(actor.department_keys)))
            .order_by(Meeting.scheduled_date.desc())
        )
        return list(result.scalars().all())

    # =====================================================
    # UPDATES
    # =====================================================

    async def update_status(self, actor: User, meeting_id: str, changes: Dict[str, Any]) -> Meeting:
        meeting = await self.get_for(actor, meeting_id, Action.MEETING_UPDATE_STATUS)
        ensure_fields_allowed(actor, Action.MEETING_UPDATE_STATUS, changes.keys())
        for key, value in changes.items():
            if value is not None:
                setattr(meeting, key, value)
        await self.db.commit()
        await self.db.refresh(meeting)
        return meeting

    async def update_student_points(self, actor: User, meeting_id: str, points: str) -> Meeting:
        meeting = await self.get_for(actor, meeting_id, Action.MEETING_UPDATE_STUDENT_POINTS)
        meeting.student_discussion_points = points
        await self.db.commit()
        await self.db.refresh(meeting)
        return meeting

    async def replace_tasks(self, actor: User, meeting_id: str, tasks: List[Any]) -> Meeting:
        meeting = await self.get_for(actor, meeting_id, Action.MEETING_MANAGE_TASKS)
        meeting.tasks = [
            {"id": uuid.uuid4().hex, "description": task.description, "status": TaskStatus(task.status).value}
            for task in tasks
        ]
        await self.db.commit()
        await self.db.refresh(meeting)
        return meeting

    async def update_task(self, actor: User, meeting_id: str, task_id: str, status: TaskStatus) -> Meeting:
        meeting = await self.get_for(actor, meeting_id, Action.MEETING_MANAGE_TASKS)
        tasks = [dict(task) for task in (meeting.tasks or [])]
        for task in tasks:
            if task.get("id") == task_id:
                task["status"] = TaskStatus(status).value
                break
        else:
            raise TaskNotFoundError(task_id)
        # reassign so the JSON column is flagged dirty
        meeting.tasks = tasks
        await self.db.commit()
        await self.db.refresh(meeting)
        return meeting
