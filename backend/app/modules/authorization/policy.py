"""
Authorization policy
====================

Every permission check in the API goes through this table. A rule grants an
action to a set of roles, optionally narrowed by an ownership/department check
against the target resource. A request is allowed if ANY rule for the action
grants it; with no matching rule it is denied (there is no implicit allow).

Two levels are used:

- role gate (``require_action`` dependency / ``roles_for``): only the actor's
  role is checked, before the resource is loaded
- resource check (``ensure_authorized(actor, action, resource)``): role AND the
  rule's predicate against the loaded resource

Field-level rules (``MUTABLE_FIELDS``) say which keys of a partial update a role
may send.

Department matching goes through ``department_keys`` so the legacy ``branch``
column counts as a department (either field matching is enough).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Set, Tuple

from app.core.exceptions import AuthorizationError, ForbiddenFieldsError
from app.core.logging_config import logger
from app.models.user import User, UserRole


class Action(str, Enum):
    # Projects
    PROJECT_CREATE = "project:create"
    PROJECT_LIST = "project:list"
    PROJECT_READ = "project:read"
    PROJECT_UPDATE = "project:update"
    PROJECT_TRANSITION = "project:transition"
    PROJECT_ASSIGN_GUIDE = "project:assign_guide"
    PROJECT_SET_PROGRESS = "project:set_progress"
    PROJECT_ASSIGN_PANEL = "project:assign_panel"
    PROJECT_DELETE = "project:delete"
    PROGRESS_CREATE = "progress:create"
    SUBMISSION_CREATE = "submission:create"

    # Meetings
    MEETING_SCHEDULE = "meeting:schedule"
    MEETING_READ = "meeting:read"
    MEETING_UPDATE_STATUS = "meeting:update_status"
    MEETING_MANAGE_TASKS = "meeting:manage_tasks"
    MEETING_UPDATE_STUDENT_POINTS = "meeting:update_student_points"
    MEETING_LIST_DEPARTMENT = "meeting:list_department"

    # Evaluations
    EVALUATION_WRITE = "evaluation:write"
    EVALUATION_READ = "evaluation:read"

    # Users
    USER_LIST = "user:list"
    USER_CREATE = "user:create"
    USER_READ = "user:read"
    USER_UPDATE = "user:update"
    USER_DELETE = "user:delete"
    USER_ASSIGN_GUIDE = "user:assign_guide"
    FACULTY_LIST = "faculty:list"
    STUDENT_LIST = "student:list"
    STUDENT_DETAILS = "student:details"
    ASSIGNED_STUDENTS_READ = "faculty:assigned_students"

    # Self-service
    PROFILE_UPDATE = "profile:update"
    STUDENT_SELF_SERVICE = "student:self"
    NOTIFICATION_MANAGE = "notification:manage"


Check = Callable[[User, Any], bool]


@dataclass(frozen=True)
class Rule:
    roles: FrozenSet[UserRole]
    check: Optional[Check] = None
    name: str = "role"

    def grants(self, actor: User, resource: Any = None, role_only: bool = False) -> bool:
        if actor.role not in self.roles:
            return False
        if self.check is None or role_only:
            return True
        if resource is None:
            return False
        return bool(self.check(actor, resource))


@dataclass
class Decision:
    allowed: bool
    action: Action
    rule: Optional[str] = None
    reason: Optional[str] = None
    allowed_roles: Set[str] = field(default_factory=set)

    def __bool__(self) -> bool:
        return self.allowed


# ============================================
# Predicates
# ============================================

def _department_keys(resource: Any) -> Set[str]:
    keys = getattr(resource, "department_keys", None)
    if keys is not None:
        return set(keys)
    department = getattr(resource, "department", None)
    return {department} if department else set()


def same_department(actor: User, resource: Any) -> bool:
    """Actor's department/branch intersects the resource's department/branch"""
    return bool(actor.department_keys & _department_keys(resource))


def owns_project(actor: User, project: Any) -> bool:
    return project.student_id == actor.id


def guides_project(actor: User, project: Any) -> bool:
    return project.guide_id is not None and project.guide_id == actor.id


def on_panel(actor: User, project: Any) -> bool:
    return actor.id in (project.panel_member_ids or [])


def attends_meeting(actor: User, meeting: Any) -> bool:
    return meeting.student_id == actor.id


def runs_meeting(actor: User, meeting: Any) -> bool:
    return meeting.faculty_id is not None and meeting.faculty_id == actor.id


def guides_student(actor: User, student: Any) -> bool:
    return getattr(student, "assigned_guide_id", None) == actor.id


def evaluated_by(actor: User, evaluation: Any) -> bool:
    return evaluation.evaluator_id == actor.id


def evaluates_self(actor: User, evaluation: Any) -> bool:
    return evaluation.student_id == actor.id


def addressed_to(actor: User, notification: Any) -> bool:
    return notification.recipient_id == actor.id


# ============================================
# Rule table
# ============================================

STUDENT = frozenset({UserRole.STUDENT})
FACULTY = frozenset({UserRole.FACULTY})
HOD = frozenset({UserRole.HOD})
ADMIN = frozenset({UserRole.ADMIN})
EVERYONE = frozenset(UserRole)


def _rule(roles: FrozenSet[UserRole], check: Optional[Check] = None) -> Rule:
    return Rule(roles=roles, check=check, name=check.__name__ if check else "role")


_ADMIN_ANY = _rule(ADMIN)
_HOD_DEPARTMENT = _rule(HOD, same_department)

RULES: Dict[Action, List[Rule]] = {
    Action.PROJECT_CREATE: [_rule(STUDENT)],
    Action.PROJECT_LIST: [_rule(HOD), _ADMIN_ANY],
    Action.PROJECT_READ: [
        _rule(STUDENT, owns_project),
        _rule(FACULTY, guides_project),
        _rule(FACULTY, on_panel),
        _HOD_DEPARTMENT,
        _ADMIN_ANY,
    ],
    Action.PROJECT_UPDATE: [_rule(FACULTY, guides_project), _HOD_DEPARTMENT, _ADMIN_ANY],
    Action.PROJECT_TRANSITION: [_HOD_DEPARTMENT, _ADMIN_ANY],
    Action.PROJECT_ASSIGN_GUIDE: [_HOD_DEPARTMENT, _ADMIN_ANY],
    Action.PROJECT_SET_PROGRESS: [_rule(FACULTY, guides_project)],
    Action.PROJECT_ASSIGN_PANEL: [_ADMIN_ANY],
    Action.PROJECT_DELETE: [_ADMIN_ANY],
    Action.PROGRESS_CREATE: [_rule(STUDENT, owns_project)],
    Action.SUBMISSION_CREATE: [_rule(STUDENT, owns_project)],

    Action.MEETING_SCHEDULE: [_rule(FACULTY, guides_project)],
    Action.MEETING_READ: [
        _rule(STUDENT, attends_meeting),
        _rule(FACULTY, runs_meeting),
        _HOD_DEPARTMENT,
        _ADMIN_ANY,
    ],
    Action.MEETING_UPDATE_STATUS: [_rule(FACULTY, runs_meeting)],
    Action.MEETING_MANAGE_TASKS: [_rule(FACULTY, runs_meeting)],
    Action.MEETING_UPDATE_STUDENT_POINTS: [_rule(STUDENT, attends_meeting)],
    Action.MEETING_LIST_DEPARTMENT: [_rule(HOD)],

    Action.EVALUATION_WRITE: [_rule(FACULTY, guides_student)],
    Action.EVALUATION_READ: [
        _rule(STUDENT, evaluates_self),
        _rule(FACULTY, evaluated_by),
        _ADMIN_ANY,
    ],

    Action.USER_LIST: [_rule(HOD), _ADMIN_ANY],
    Action.USER_CREATE: [_ADMIN_ANY],
    Action.USER_READ: [_ADMIN_ANY],
    Action.USER_UPDATE: [_ADMIN_ANY],
    Action.USER_DELETE: [_ADMIN_ANY],
    Action.USER_ASSIGN_GUIDE: [_HOD_DEPARTMENT, _ADMIN_ANY],
    Action.FACULTY_LIST: [_rule(HOD), _ADMIN_ANY],
    Action.STUDENT_LIST: [_rule(HOD), _rule(FACULTY), _ADMIN_ANY],
    Action.STUDENT_DETAILS: [_HOD_DEPARTMENT, _ADMIN_ANY],
    Action.ASSIGNED_STUDENTS_READ: [_rule(FACULTY)],

    Action.PROFILE_UPDATE: [_rule(EVERYONE)],
    Action.STUDENT_SELF_SERVICE: [_rule(STUDENT)],
    Action.NOTIFICATION_MANAGE: [_rule(EVERYONE, addressed_to)],
}


# Keys of a partial update each role may send, per action
PROJECT_CONTENT_FIELDS = frozenset({
    "title", "description", "problem_statement", "technologies", "expected_outcome", "feedback",
})

MUTABLE_FIELDS: Dict[Tuple[Action, UserRole], FrozenSet[str]] = {
    (Action.PROJECT_UPDATE, UserRole.HOD): PROJECT_CONTENT_FIELDS | {"guide_id"},
    (Action.PROJECT_UPDATE, UserRole.ADMIN): PROJECT_CONTENT_FIELDS | {"guide_id"},
    (Action.PROJECT_UPDATE, UserRole.FACULTY): frozenset({"feedback"}),
    (Action.MEETING_UPDATE_STATUS, UserRole.FACULTY): frozenset({"status", "feedback", "meeting_summary", "guide_remarks"}),
    (Action.MEETING_UPDATE_STUDENT_POINTS, UserRole.STUDENT): frozenset({"student_discussion_points"}),
    (Action.PROFILE_UPDATE, UserRole.STUDENT): frozenset({"full_name", "email", "password", "branch", "course"}),
    (Action.PROFILE_UPDATE, UserRole.FACULTY): frozenset({"full_name", "email", "password", "branch", "department"}),
    (Action.PROFILE_UPDATE, UserRole.HOD): frozenset({"full_name", "email", "password", "branch", "department"}),
    (Action.PROFILE_UPDATE, UserRole.ADMIN): frozenset({"full_name", "email", "password"}),
    (Action.USER_UPDATE, UserRole.ADMIN): frozenset({
        "full_name", "email", "password", "role", "branch", "department", "course",
    }),
}


# ============================================
# Denial hooks
# ============================================

DenialHook = Callable[[User, Decision, Any], None]
_denial_hooks: List[DenialHook] = []


def register_denial_hook(hook: DenialHook) -> None:
    """Call `hook(actor, decision, resource)` on every denial (audit trail, lockout, ...)"""
    _denial_hooks.append(hook)


def clear_denial_hooks() -> None:
    _denial_hooks.clear()


def _notify_denial(actor: User, decision: Decision, resource: Any) -> None:
    logger.log_authorization(
        action=decision.action.value,
        actor_id=str(actor.id),
        actor_role=actor.role.value,
        allowed=False,
        allowed_roles=decision.allowed_roles,
        reason=decision.reason,
        resource_id=str(getattr(resource, "id", "")) or None,
    )
    for hook in list(_denial_hooks):
        try:
            hook(actor, decision, resource)
        except Exception as e:
            logger.log_error_with_context(e, context="authorization denial hook")


# ============================================
# Evaluation
# ============================================

def roles_for(action: Action) -> Set[str]:
    roles: Set[str] = set()
    for rule in RULES.get(action, []):
        roles.update(role.value for role in rule.roles)
    return roles


def authorize(actor: User, action: Action, resource: Any = None, role_only: bool = False) -> Decision:
    """
    Decide whether `actor` may perform `action` on `resource`.

    With role_only=True the resource predicates are skipped (route-level gate).
    Otherwise a rule that carries a predicate only grants when a resource is given.
    """
    rules = RULES.get(action, [])
    allowed_roles = roles_for(action)

    for rule in rules:
        if rule.grants(actor, resource, role_only=role_only):
            return Decision(True, action, rule=rule.name, allowed_roles=allowed_roles)

    if actor.role.value not in allowed_roles:
        reason = (
            f"Access denied. Your role ({actor.role.value}) is not authorized for this resource. "
            f"Required roles: {', '.join(sorted(allowed_roles))}"
        )
    else:
        reason = "You are not authorized to access this resource"
    return Decision(False, action, reason=reason, allowed_roles=allowed_roles)


def ensure_authorized(actor: User, action: Action, resource: Any = None, role_only: bool = False) -> Decision:
    """authorize() or raise AuthorizationError (403)"""
    decision = authorize(actor, action, resource, role_only=role_only)
    if not decision.allowed:
        _notify_denial(actor, decision, resource)
        raise AuthorizationError(
            decision.reason,
            actor_role=actor.role.value,
            allowed_roles=decision.allowed_roles,
            action=action.value,
        )
    return decision


def permitted_fields(actor: User, action: Action) -> FrozenSet[str]:
    return MUTABLE_FIELDS.get((action, actor.role), frozenset())


def ensure_fields_allowed(actor: User, action: Action, fields: Iterable[str]) -> None:
    """Raise ForbiddenFieldsError if any key is outside the role's mutable set"""
    forbidden = set(fields) - permitted_fields(actor, action)
    if forbidden:
        decision = Decision(
            False,
            action,
            reason=f"fields not mutable by {actor.role.value}: {', '.join(sorted(forbidden))}",
        )
        _notify_denial(actor, decision, None)
        raise ForbiddenFieldsError(forbidden, actor_role=actor.role.value)
