"""
Domain events emitted by project lifecycle, assignment, meeting and evaluation
changes. Services collect them while mutating and hand them to the notification
dispatcher once the primary write has been committed.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


class EventType(str, Enum):
    PROPOSAL_SUBMITTED = "proposal_submitted"
    PROJECT_APPROVED = "project_approved"
    PROJECT_REJECTED = "project_rejected"
    PROJECT_COMPLETED = "project_completed"
    GUIDE_ASSIGNED = "guide_assigned"
    GUIDE_UNASSIGNED = "guide_unassigned"
    PROGRESS_SUBMITTED = "progress_submitted"
    DISSERTATION_SUBMITTED = "dissertation_submitted"
    MEETING_SCHEDULED = "meeting_scheduled"
    MEETING_RESCHEDULED = "meeting_rescheduled"
    EVALUATION_RECORDED = "evaluation_recorded"


@dataclass
class DomainEvent:
    event_type = None  # set on each subclass
    occurred_at: datetime = field(default_factory=datetime.utcnow, init=False)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["event_type"] = self.event_type.value
        return data


@dataclass
class ProposalSubmitted(DomainEvent):
    event_type = EventType.PROPOSAL_SUBMITTED
    project_id: str = ""
    project_title: str = ""
    student_name: str = ""
    hod_id: Optional[str] = None


@dataclass
class ProjectApproved(DomainEvent):
    event_type = EventType.PROJECT_APPROVED
    project_id: str = ""
    project_title: str = ""
    student_id: str = ""


@dataclass
class ProjectRejected(DomainEvent):
    event_type = EventType.PROJECT_REJECTED
    project_id: str = ""
    project_title: str = ""
    student_id: str = ""
    comments: Optional[str] = None


@dataclass
class ProjectCompleted(DomainEvent):
    event_type = EventType.PROJECT_COMPLETED
    project_id: str = ""
    project_title: str = ""
    student_id: str = ""


@dataclass
class GuideAssigned(DomainEvent):
    """Guide set on a project, or directly on a student when project_id is None"""
    event_type = EventType.GUIDE_ASSIGNED
    student_id: str = ""
    student_name: str = ""
    guide_id: str = ""
    guide_name: str = ""
    project_id: Optional[str] = None
    project_title: Optional[str] = None


@dataclass
class GuideUnassigned(DomainEvent):
    """A guide's account was removed; the student needs a new one"""
    event_type = EventType.GUIDE_UNASSIGNED
    student_id: str = ""
    guide_name: str = ""
    project_id: Optional[str] = None
    project_title: Optional[str] = None


@dataclass
class ProgressSubmitted(DomainEvent):
    event_type = EventType.PROGRESS_SUBMITTED
    project_id: str = ""
    project_title: str = ""
    progress_id: str = ""
    student_name: str = ""
    guide_id: Optional[str] = None
    completion_percentage: int = 0


@dataclass
class DissertationSubmitted(DomainEvent):
    event_type = EventType.DISSERTATION_SUBMITTED
    project_id: str = ""
    project_title: str = ""
    submission_id: str = ""
    student_name: str = ""
    guide_id: Optional[str] = None
    hod_id: Optional[str] = None


@dataclass
class MeetingScheduled(DomainEvent):
    event_type = EventType.MEETING_SCHEDULED
    meeting_id: str = ""
    meeting_number: int = 0
    scheduled_date: Optional[datetime] = None
    project_title: str = ""
    student_id: str = ""
    guide_name: str = ""


@dataclass
class MeetingRescheduled(MeetingScheduled):
    event_type = EventType.MEETING_RESCHEDULED


@dataclass
class EvaluationRecorded(DomainEvent):
    event_type = EventType.EVALUATION_RECORDED
    evaluation_id: str = ""
    student_id: str = ""
    evaluation_type: str = ""
    overall_grade: str = ""
    updated: bool = False
