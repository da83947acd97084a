"""
Project Service Layer
Proposal submission, HOD review, guide/panel assignment, progress updates and
final submission. Every mutation commits first and dispatches notifications
afterwards.
"""

from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    ActiveProposalExistsError,
    InvalidGuideError,
    MissingFieldsError,
    ProjectNotApprovedError,
    ProjectNotFoundError,
    StateConflictError,
)
from app.core.logging_config import logger, set_project_id
from app.core.types import is_valid_id
from app.models import (
    ACTIVE_STATUSES,
    Progress,
    Project,
    ProjectStatus,
    Submission,
    User,
    UserRole,
)
from app.modules.authorization.policy import Action, authorize, ensure_authorized, ensure_fields_allowed
from app.modules.lifecycle.events import (
    DissertationSubmitted,
    DomainEvent,
    GuideAssigned,
    ProgressSubmitted,
    ProjectApproved,
    ProjectCompleted,
    ProjectRejected,
    ProposalSubmitted,
)
from app.modules.lifecycle.state_machine import apply_transition, parse_review_status
from app.modules.notifications.dispatcher import NotificationDispatcher
from app.services.upload_service import discard_stored_file, save_submission_file
from app.services.user_service import UserService, delete_project_children


# content fields a null in a partial update clears instead of skipping
CLEARABLE_FIELDS = frozenset({"feedback"})


class ProjectService:
    """Service for projects and everything hanging off them"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.users = UserService(db)
        self.notifier = NotificationDispatcher(db)

    async def _notify(self, events: List[DomainEvent], *instances) -> None:
        """Dispatch after commit; reload instances if the dispatcher had to roll back"""
        result = await self.notifier.dispatch(*events)
        if not result.ok:
            for instance in instances:
                await self.db.refresh(instance)

    # =====================================================
    # LOOKUPS
    # =====================================================

    async def get(self, project_id: str) -> Project:
        if not is_valid_id(project_id):
            raise ProjectNotFoundError(project_id)
        result = await self.db.execute(select(Project).where(Project.id == str(project_id)))
        project = result.scalar_one_or_none()
        if not project:
            raise ProjectNotFoundError(project_id)
        set_project_id(str(project.id))
        return project

    async def get_for(self, actor: User, project_id: str, action: Action = Action.PROJECT_READ) -> Project:
        project = await self.get(project_id)
        ensure_authorized(actor, action, project)
        return project

    async def find_active_project(self, student_id: str) -> Optional[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.student_id == student_id, Project.status.in_(ACTIVE_STATUSES))
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def list_projects(self, actor: User) -> List[Project]:
        """Admin: all projects. HOD: projects of their department."""
        ensure_authorized(actor, Action.PROJECT_LIST, role_only=True)
        query = select(Project)
        if actor.role == UserRole.HOD:
            query = query.where(Project.department.in_(list(actor.department_keys)))
        result = await self.db.execute(query.order_by(Project.created_at.desc()))
        return list(result.scalars().all())

    async def list_student_projects(self, actor: User, student_id: Optional[str] = None) -> List[Project]:
        """
        Students always get their own projects. Other roles pass student_id and
        only see what PROJECT_READ grants them.
        """
        if actor.role == UserRole.STUDENT or not student_id:
            student_id = actor.id
        result = await self.db.execute(
            select(Project).where(Project.student_id == student_id).order_by(Project.created_at.desc())
        )
        projects = list(result.scalars().all())
        if actor.role == UserRole.STUDENT:
            return projects
        return [project for project in projects if self._can_read(actor, project)]

    async def list_guided_projects(self, faculty: User) -> List[Project]:
        result = await self.db.execute(
            select(Project).where(Project.guide_id == faculty.id).order_by(Project.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    def _can_read(actor: User, project: Project) -> bool:
        return authorize(actor, Action.PROJECT_READ, project).allowed

    # =====================================================
    # PROPOSALS
    # =====================================================

    async def submit_proposal(self, actor: User, data) -> Project:
        """Create a pending project. One active (pending/approved) project per student."""
        ensure_authorized(actor, Action.PROJECT_CREATE)

        active = await self.find_active_project(actor.id)
        if active:
            raise ActiveProposalExistsError(active.id, active.status.value)

        # proposals default to the student's own department
        department = data.department or actor.primary_department
        if not department:
            raise MissingFieldsError(["department"])

        hod = await self.users.find_department_hod(department)
        project = Project(
            title=data.title,
            description=data.description,
            problem_statement=data.problem_statement,
            technologies=list(data.technologies),
            expected_outcome=data.expected_outcome,
            department=department,
            student_id=actor.id,
            hod_assigned_id=hod.id if hod else None,
            guide_id=actor.assigned_guide_id,
            status=ProjectStatus.PENDING,
            panel_member_ids=[],
        )
        self.db.add(project)
        await self.db.commit()
        await self.db.refresh(project)

        logger.log_transition(project_id=project.id, from_status=None, to_status=project.status.value,
                              actor_id=actor.id)
        if not hod:
            logger.warning(
                f"[Projects] No HOD found for department {department}; proposal {project.id} unassigned",
                extra={"event_type": "hod_missing", "department": department},
            )

        await self._notify([ProposalSubmitted(
            project_id=project.id,
            project_title=project.title,
            student_name=actor.full_name,
            hod_id=hod.id if hod else None,
        )], project)
        return project

    # =====================================================
    # REVIEW / STATUS
    # =====================================================

    async def change_status(self, actor: User, project_id: str, status: str,
                            comments: Optional[str] = None, guide_id: Optional[str] = None) -> Project:
        target = parse_review_status(status)
        project = await self.get(project_id)
        ensure_authorized(actor, Action.PROJECT_TRANSITION, project)

        # Validate everything before touching the row
        guide = await self.users.require_faculty(guide_id) if guide_id else None

        apply_transition(project, target, actor_id=actor.id)
        if comments:
            project.feedback = comments

        events: List[DomainEvent] = []
        if guide:
            events.extend(await self._set_guide(project, guide))

        await self.db.commit()

        if target == ProjectStatus.APPROVED:
            events.insert(0, ProjectApproved(project_id=project.id, project_title=project.title,
                                             student_id=project.student_id))
        elif target == ProjectStatus.REJECTED:
            events.insert(0, ProjectRejected(project_id=project.id, project_title=project.title,
                                             student_id=project.student_id, comments=comments))
        elif target == ProjectStatus.COMPLETED:
            events.insert(0, ProjectCompleted(project_id=project.id, project_title=project.title,
                                              student_id=project.student_id))

        await self.db.refresh(project)
        await self._notify(events, project)
        return project

    async def _set_guide(self, project: Project, guide: User) -> List[DomainEvent]:
        """Point project (and its student) at guide; caller commits"""
        project.guide_id = guide.id
        project.touch()
        student = await self.users.require(project.student_id)
        student.assigned_guide_id = guide.id
        return [GuideAssigned(
            project_id=project.id,
            project_title=project.title,
            student_id=student.id,
            student_name=student.full_name,
            guide_id=guide.id,
            guide_name=guide.full_name,
        )]

    async def assign_guide(self, actor: User, project_id: str, guide_id: str) -> Project:
        """HOD/admin (re-)assigns the guide; status is unchanged"""
        project = await self.get(project_id)
        ensure_authorized(actor, Action.PROJECT_ASSIGN_GUIDE, project)
        guide = await self.users.require_faculty(guide_id)

        events = await self._set_guide(project, guide)
        await self.db.commit()
        await self.db.refresh(project)
        await self._notify(events, project)
        return project

    # =====================================================
    # EDITS
    # =====================================================

    async def update_project(self, actor: User, project_id: str, changes: Dict[str, Any]) -> Project:
        """Field-level update; allowed keys depend on the actor's role"""
        project = await self.get(project_id)
        ensure_authorized(actor, Action.PROJECT_UPDATE, project)
        ensure_fields_allowed(actor, Action.PROJECT_UPDATE, changes.keys())

        events: List[DomainEvent] = []
        guide_id = changes.pop("guide_id", None)
        if guide_id:
            guide = await self.users.require_faculty(guide_id)
            events.extend(await self._set_guide(project, guide))

        for key, value in changes.items():
            if value is None and key not in CLEARABLE_FIELDS:
                continue
            setattr(project, key, list(value) if key == "technologies" else value)
        project.touch()

        await self.db.commit()
        await self.db.refresh(project)
        await self._notify(events, project)
        return project

    async def set_progress(self, actor: User, project_id: str, progress: int) -> Project:
        project = await self.get(project_id)
        ensure_authorized(actor, Action.PROJECT_SET_PROGRESS, project)
        project.progress = progress
        project.touch()
        await self.db.commit()
        return project

    async def assign_panel(self, actor: User, project_id: str, member_ids: List[str]) -> Project:
        project = await self.get(project_id)
        ensure_authorized(actor, Action.PROJECT_ASSIGN_PANEL, project)

        unique_ids: List[str] = []
        for member_id in member_ids:
            member = await self.users.get(member_id)
            if not member or member.role != UserRole.FACULTY:
                raise InvalidGuideError(member_id)
            if member.id not in unique_ids:
                unique_ids.append(member.id)

        project.panel_member_ids = unique_ids
        project.touch()
        await self.db.commit()
        return project

    async def delete_project(self, actor: User, project_id: str) -> None:
        project = await self.get(project_id)
        ensure_authorized(actor, Action.PROJECT_DELETE, project)
        await delete_project_children(self.db, [project.id])
        await self.db.delete(project)
        await self.db.commit()
        logger.info(
            f"[Projects] Project {project_id} deleted by {actor.id}",
            extra={"event_type": "project_deleted", "actor_id": actor.id},
        )

    # =====================================================
    # PROGRESS
    # =====================================================

    async def add_progress(self, actor: User, data) -> Progress:
        """Record a progress report and copy its percentage onto the project"""
        project = await self.get(data.project_id)
        ensure_authorized(actor, Action.PROGRESS_CREATE, project)
        if project.status != ProjectStatus.APPROVED:
            raise StateConflictError(
                "Progress can only be reported on an approved project",
                code="PROJECT_NOT_APPROVED",
                details={"status": project.status.value},
            )

        entry = Progress(
            project_id=project.id,
            student_id=actor.id,
            title=data.title,
            description=data.description,
            completion_percentage=data.completion_percentage,
            challenges=data.challenges,
            next_steps=data.next_steps,
        )
        self.db.add(entry)
        project.progress = data.completion_percentage
        project.touch()
        await self.db.commit()
        await self.db.refresh(entry)

        await self._notify([ProgressSubmitted(
            project_id=project.id,
            project_title=project.title,
            progress_id=entry.id,
            student_name=actor.full_name,
            guide_id=project.guide_id,
            completion_percentage=entry.completion_percentage,
        )], entry)
        return entry

    async def list_progress(self, actor: User, project_id: str) -> List[Progress]:
        project = await self.get_for(actor, project_id)
        result = await self.db.execute(
            select(Progress).where(Progress.project_id == project.id).order_by(Progress.created_at.desc())
        )
        return list(result.scalars().all())

    # =====================================================
    # FINAL SUBMISSION
    # =====================================================

    async def final_submission(self, actor: User, project_id: str, title: str, abstract: str,
                               keywords: List[str], upload: UploadFile) -> Submission:
        """
        approved -> submitted. The status guard runs before the file is written,
        so a refused submission leaves no file, no row and no status change.
        """
        project = await self.get(project_id)
        ensure_authorized(actor, Action.SUBMISSION_CREATE, project)
        if project.status != ProjectStatus.APPROVED:
            raise ProjectNotApprovedError(project.status.value)

        stored = await save_submission_file(upload, actor.id)
        try:
            submission = Submission(
                project_id=project.id,
                student_id=actor.id,
                title=title,
                abstract=abstract,
                keywords=keywords,
                file_url=stored.url,
                file_name=stored.name,
                file_size=stored.size,
            )
            self.db.add(submission)
            apply_transition(project, ProjectStatus.SUBMITTED, actor_id=actor.id)
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            discard_stored_file(stored)
            raise
        await self.db.refresh(submission)

        await self._notify([DissertationSubmitted(
            project_id=project.id,
            project_title=project.title,
            submission_id=submission.id,
            student_name=actor.full_name,
            guide_id=project.guide_id,
            hod_id=project.hod_assigned_id,
        )], submission)
        return submission

    async def latest_submission(self, actor: User, project_id: str) -> Optional[Submission]:
        project = await self.get_for(actor, project_id)
        result = await self.db.execute(
            select(Submission)
            .where(Submission.project_id == project.id)
            .order_by(Submission.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
