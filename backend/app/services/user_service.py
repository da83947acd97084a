"""
User Service Layer
Registration, profiles, admin user management, guide assignment and the
cascade that runs when an account is deleted.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    DuplicateEmailError,
    InvalidCredentialsError,
    InvalidGuideError,
    MissingFieldsError,
    StateConflictError,
    UserNotFoundError,
)
from app.core.logging_config import logger
from app.core.security import get_password_hash, verify_password
from app.core.types import is_valid_id
from app.models import (
    Evaluation,
    Meeting,
    Notification,
    Progress,
    Project,
    ACTIVE_STATUSES,
    Submission,
    User,
    UserRole,
)
from app.models.user import ROLE_REQUIRED_FIELDS, missing_role_fields
from app.modules.authorization.policy import Action, ensure_authorized, ensure_fields_allowed
from app.modules.lifecycle.events import DomainEvent, GuideAssigned, GuideUnassigned
from app.modules.notifications.dispatcher import NotificationDispatcher


ACADEMIC_FIELDS = ("branch", "department", "course")


class UserService:
    """Service for user accounts"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.notifier = NotificationDispatcher(db)

    # =====================================================
    # LOOKUPS
    # =====================================================

    async def get(self, user_id: str) -> Optional[User]:
        if not is_valid_id(user_id):
            return None
        result = await self.db.execute(select(User).where(User.id == str(user_id)))
        return result.scalar_one_or_none()

    async def require(self, user_id: str) -> User:
        user = await self.get(user_id)
        if not user:
            raise UserNotFoundError(user_id)
        return user

    async def require_student(self, student_id: str) -> User:
        student = await self.get(student_id)
        if not student or student.role != UserRole.STUDENT:
            raise UserNotFoundError(student_id)
        return student

    async def require_faculty(self, guide_id: str) -> User:
        """Guide references must point at a faculty account (400 otherwise)"""
        guide = await self.get(guide_id)
        if not guide or guide.role != UserRole.FACULTY:
            raise InvalidGuideError(guide_id)
        return guide

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def find_department_hod(self, department: str) -> Optional[User]:
        """The HOD whose department (or legacy branch) is `department`"""
        result = await self.db.execute(
            select(User)
            .where(User.role == UserRole.HOD, User.department_clause([department]))
            .order_by(User.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()

    # =====================================================
    # REGISTRATION / LOGIN
    # =====================================================

    async def _create(self, email: str, password: str, full_name: str, role: UserRole,
                      branch: Optional[str] = None, department: Optional[str] = None,
                      course: Optional[str] = None) -> User:
        missing = missing_role_fields(role, {"branch": branch, "department": department, "course": course})
        if missing:
            raise MissingFieldsError(missing)

        email = email.lower()
        if await self.get_by_email(email):
            raise DuplicateEmailError(email)

        user = User(
            email=email,
            hashed_password=get_password_hash(password),
            full_name=full_name,
            role=role,
            branch=branch or None,
            # canonical column; older clients only send branch
            department=department or branch or None,
            course=course or None,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def register(self, data) -> User:
        """Self-registration (admin role is refused by the schema)"""
        return await self._create(
            data.email, data.password, data.full_name, data.role,
            branch=data.branch, department=data.department, course=data.course,
        )

    async def authenticate(self, email: str, password: str) -> User:
        user = await self.get_by_email(email)
        if not user or not verify_password(password, user.hashed_password):
            raise InvalidCredentialsError()
        return user

    async def admin_exists(self) -> bool:
        result = await self.db.execute(select(User.id).where(User.role == UserRole.ADMIN).limit(1))
        return result.first() is not None

    async def bootstrap_admin(self, email: str, password: str, full_name: str) -> User:
        """Create the first admin; refused once any admin exists"""
        if await self.admin_exists():
            raise StateConflictError("Admin user already exists", code="ADMIN_EXISTS")
        return await self._create(email, password, full_name, UserRole.ADMIN)

    # =====================================================
    # PROFILE / ADMIN UPDATES
    # =====================================================

    async def _apply_changes(self, user: User, changes: Dict[str, Any]) -> User:
        """Apply a partial update; the merged row must still satisfy its role's required fields"""
        role = changes.get("role") or user.role
        merged = {key: changes[key] if key in changes else getattr(user, key) for key in ACADEMIC_FIELDS}
        cleared = [key for key in ROLE_REQUIRED_FIELDS.get(role, ()) if key in changes and not changes[key]]
        missing = cleared or missing_role_fields(role, merged)
        if missing:
            raise MissingFieldsError(missing)

        if "email" in changes and changes["email"]:
            email = changes["email"].lower()
            if email != user.email:
                existing = await self.get_by_email(email)
                if existing and existing.id != user.id:
                    raise DuplicateEmailError(email)
            user.email = email

        if changes.get("password"):
            user.hashed_password = get_password_hash(changes["password"])

        for key in ("full_name", "role"):
            if changes.get(key) is not None:
                setattr(user, key, changes[key])
        # null or blank clears an academic field
        for key in ACADEMIC_FIELDS:
            if key in changes:
                setattr(user, key, changes[key] or None)
        if not user.department and user.branch:
            user.department = user.branch

        await self.db.commit()
        await self.db.refresh(user)
        return user

    async def update_profile(self, actor: User, changes: Dict[str, Any]) -> User:
        ensure_fields_allowed(actor, Action.PROFILE_UPDATE, changes.keys())
        return await self._apply_changes(actor, changes)

    async def update_user(self, actor: User, user_id: str, changes: Dict[str, Any]) -> User:
        ensure_authorized(actor, Action.USER_UPDATE)
        ensure_fields_allowed(actor, Action.USER_UPDATE, changes.keys())
        user = await self.require(user_id)
        return await self._apply_changes(user, changes)

    async def create_user(self, actor: User, data) -> User:
        ensure_authorized(actor, Action.USER_CREATE)
        return await self._create(
            data.email, data.password, data.full_name, data.role,
            branch=data.branch, department=data.department, course=data.course,
        )

    # =====================================================
    # LISTINGS
    # =====================================================

    async def list_users(self, actor: User, role: Optional[UserRole] = None,
                         branch: Optional[str] = None) -> List[User]:
        """Admin sees everyone; HOD only their own department"""
        ensure_authorized(actor, Action.USER_LIST, role_only=True)
        query = select(User)
        if actor.role == UserRole.HOD:
            query = query.where(User.department_clause(actor.department_keys))
        if role:
            query = query.where(User.role == role)
        if branch:
            query = query.where(User.department_clause([branch]))
        result = await self.db.execute(query.order_by(User.created_at.desc()))
        return list(result.scalars().all())

    async def list_faculty(self, actor: User) -> List[User]:
        ensure_authorized(actor, Action.FACULTY_LIST, role_only=True)
        query = select(User).where(User.role == UserRole.FACULTY)
        if actor.role == UserRole.HOD:
            query = query.where(User.department_clause(actor.department_keys))
        result = await self.db.execute(query.order_by(User.full_name))
        return list(result.scalars().all())

    async def list_students(self, actor: User, branch: Optional[str] = None) -> List[User]:
        """HOD: own department; faculty: students assigned to them; admin: all"""
        ensure_authorized(actor, Action.STUDENT_LIST, role_only=True)
        query = select(User).where(User.role == UserRole.STUDENT)
        if actor.role == UserRole.HOD:
            query = query.where(User.department_clause(actor.department_keys))
        elif actor.role == UserRole.FACULTY:
            query = query.where(User.assigned_guide_id == actor.id)
        if branch:
            query = query.where(User.department_clause([branch]))
        result = await self.db.execute(query.order_by(User.full_name))
        return list(result.scalars().all())

    async def assigned_students(self, faculty: User) -> List[Tuple[User, Optional[Project]]]:
        """Students whose guide is `faculty`, each with their most recent project"""
        ensure_authorized(faculty, Action.ASSIGNED_STUDENTS_READ, role_only=True)
        result = await self.db.execute(
            select(User)
            .where(User.role == UserRole.STUDENT, User.assigned_guide_id == faculty.id)
            .order_by(User.full_name)
        )
        students = list(result.scalars().all())
        return [(student, await self.latest_project(student.id)) for student in students]

    async def latest_project(self, student_id: str) -> Optional[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.student_id == student_id)
            .order_by(Project.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def student_details(self, actor: User, student_id: str) -> Dict[str, Any]:
        """HOD view of one student in their department"""
        student = await self.require_student(student_id)
        ensure_authorized(actor, Action.STUDENT_DETAILS, student)

        projects = await self.db.execute(
            select(Project).where(Project.student_id == student.id).order_by(Project.created_at.desc())
        )
        evaluations = await self.db.execute(
            select(Evaluation).where(Evaluation.student_id == student.id).order_by(Evaluation.created_at.desc())
        )
        guide = await self.get(student.assigned_guide_id) if student.assigned_guide_id else None
        return {
            "student": student,
            "guide": guide,
            "projects": list(projects.scalars().all()),
            "evaluations": list(evaluations.scalars().all()),
        }

    # =====================================================
    # GUIDE ASSIGNMENT
    # =====================================================

    async def assign_guide(self, actor: User, student_id: str, guide_id: str) -> Tuple[User, User]:
        """
        Set student.assigned_guide. Active projects of the student that have no
        guide yet pick up the same guide.
        """
        student = await self.require_student(student_id)
        ensure_authorized(actor, Action.USER_ASSIGN_GUIDE, student)
        guide = await self.require_faculty(guide_id)

        student.assigned_guide_id = guide.id
        await self.db.execute(
            update(Project)
            .where(
                Project.student_id == student.id,
                Project.status.in_(ACTIVE_STATUSES),
                Project.guide_id.is_(None),
            )
            .values(guide_id=guide.id)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.commit()

        logger.info(
            f"[Users] Guide {guide.id} assigned to student {student.id} by {actor.id}",
            extra={"event_type": "guide_assigned", "student_id": student.id, "guide_id": guide.id},
        )

        result = await self.notifier.dispatch(GuideAssigned(
            student_id=student.id,
            student_name=student.full_name,
            guide_id=guide.id,
            guide_name=guide.full_name,
        ))
        if not result.ok:
            await self.db.refresh(student)
            await self.db.refresh(guide)
        return student, guide

    # =====================================================
    # DELETION
    # =====================================================

    async def delete_user(self, actor: User, user_id: str) -> List[str]:
        """
        Delete an account and resolve every reference to it:

        - student: their projects (with meetings, progress, submissions,
          evaluations) are deleted
        - faculty: guide/evaluator/meeting references are set to NULL, the
          account is removed from review panels and affected students are told
        - hod: hod_assigned references are set to NULL
        - always: the user's own notifications are deleted

        Returns the ids of projects that lost their guide.
        """
        ensure_authorized(actor, Action.USER_DELETE)
        user = await self.require(user_id)
        if user.id == actor.id:
            raise StateConflictError("You cannot delete your own account", code="SELF_DELETE")

        events: List[DomainEvent] = []
        detached: List[str] = []
        deleted_id, deleted_role = user.id, user.role

        if user.role == UserRole.STUDENT:
            await self._delete_student_records(user)
        elif user.role == UserRole.FACULTY:
            events, detached = await self._detach_faculty(user)
        elif user.role == UserRole.HOD:
            await self.db.execute(
                update(Project).where(Project.hod_assigned_id == user.id).values(hod_assigned_id=None)
                .execution_options(synchronize_session="fetch")
            )

        await self.db.execute(delete(Notification).where(Notification.recipient_id == user.id))
        await self.db.delete(user)
        await self.db.commit()

        logger.info(
            f"[Users] Deleted {deleted_role.value} {deleted_id} ({len(detached)} projects detached)",
            extra={"event_type": "user_deleted", "deleted_user_id": deleted_id},
        )

        await self.notifier.dispatch(*events)
        return detached

    async def _delete_student_records(self, student: User) -> None:
        projects = await self.db.execute(select(Project).where(Project.student_id == student.id))
        projects = list(projects.scalars().all())
        await delete_project_children(self.db, [project.id for project in projects])
        for project in projects:
            await self.db.delete(project)

    async def _detach_faculty(self, faculty: User) -> Tuple[List[DomainEvent], List[str]]:
        events: List[DomainEvent] = []
        notified = set()

        guided = await self.db.execute(select(Project).where(Project.guide_id == faculty.id))
        detached = []
        for project in guided.scalars().all():
            project.guide = None
            project.guide_id = None
            project.touch()
            detached.append(project.id)
            notified.add(project.student_id)
            events.append(GuideUnassigned(
                student_id=project.student_id,
                guide_name=faculty.full_name,
                project_id=project.id,
                project_title=project.title,
            ))

        students = await self.db.execute(select(User).where(User.assigned_guide_id == faculty.id))
        for student in students.scalars().all():
            student.assigned_guide_id = None
            if student.id not in notified:
                events.append(GuideUnassigned(student_id=student.id, guide_name=faculty.full_name))

        await self.db.execute(
            update(Meeting).where(Meeting.faculty_id == faculty.id).values(faculty_id=None)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.execute(
            update(Evaluation).where(Evaluation.evaluator_id == faculty.id).values(evaluator_id=None)
            .execution_options(synchronize_session="fetch")
        )

        # panel_member_ids is a JSON list; filter in Python to stay portable
        panels = await self.db.execute(select(Project))
        for project in panels.scalars().all():
            members = project.panel_member_ids or []
            if faculty.id in members:
                project.panel_member_ids = [m for m in members if m != faculty.id]

        return events, detached


async def delete_project_children(db: AsyncSession, project_ids: List[str]) -> None:
    """Delete meetings, progress, submissions and evaluations of the given projects"""
    if not project_ids:
        return
    for model in (Meeting, Progress, Submission, Evaluation):
        rows = await db.execute(select(model).where(model.project_id.in_(project_ids)))
        for row in rows.scalars().all():
            await db.delete(row)
