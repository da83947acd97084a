"""
Project status state machine

    pending ──► approved ──► submitted ──► completed
       │
       └──────► rejected

- pending -> approved/rejected: HOD of the department or admin
- approved -> submitted: only through the student's final submission
- submitted -> completed: HOD of the department or admin

A rejected or completed project no longer blocks a new proposal; only pending
and approved count as active. Any other change is refused with
InvalidStatusTransitionError instead of overwriting the status.
"""

from typing import Dict, FrozenSet, Optional

from app.core.exceptions import InvalidStatusError, InvalidStatusTransitionError
from app.core.logging_config import logger
from app.models.project import Project, ProjectStatus


PROJECT_TRANSITIONS: Dict[ProjectStatus, FrozenSet[ProjectStatus]] = {
    ProjectStatus.PENDING: frozenset({ProjectStatus.APPROVED, ProjectStatus.REJECTED}),
    ProjectStatus.APPROVED: frozenset({ProjectStatus.SUBMITTED}),
    ProjectStatus.SUBMITTED: frozenset({ProjectStatus.COMPLETED}),
    ProjectStatus.REJECTED: frozenset(),
    ProjectStatus.COMPLETED: frozenset(),
}

# Targets reachable through the status endpoint; `submitted` needs a file upload
REVIEW_TARGETS: FrozenSet[ProjectStatus] = frozenset({
    ProjectStatus.APPROVED,
    ProjectStatus.REJECTED,
    ProjectStatus.COMPLETED,
})


def parse_review_status(value: str) -> ProjectStatus:
    """Validate a status string sent to the status endpoint"""
    allowed = sorted(status.value for status in REVIEW_TARGETS)
    try:
        status = ProjectStatus((value or "").strip().lower())
    except ValueError:
        raise InvalidStatusError(value, allowed)
    if status == ProjectStatus.PENDING:
        # Valid value, but no transition ever leads back to pending
        return status
    if status not in REVIEW_TARGETS:
        raise InvalidStatusError(value, allowed)
    return status


def can_transition(current: ProjectStatus, target: ProjectStatus) -> bool:
    return target in PROJECT_TRANSITIONS.get(current, frozenset())


def ensure_transition(current: ProjectStatus, target: ProjectStatus) -> None:
    if not can_transition(current, target):
        raise InvalidStatusTransitionError(current.value, target.value)


def apply_transition(project: Project, target: ProjectStatus, actor_id: Optional[str] = None) -> ProjectStatus:
    """Move project to target, returning the previous status"""
    previous = project.status
    ensure_transition(previous, target)
    project.status = target
    project.touch()
    logger.log_transition(
        project_id=str(project.id),
        from_status=previous.value,
        to_status=target.value,
        actor_id=actor_id,
    )
    return previous
