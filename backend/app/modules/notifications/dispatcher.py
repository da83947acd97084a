"""
Notification dispatcher

Turns domain events into Notification rows. Dispatch is best effort and runs
after the triggering change has been committed: a failure here is logged and
rolled back, never raised, so the primary operation still succeeds. Duplicates
are tolerated.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging_config import logger
from app.models.notification import Notification, NotificationType
from app.modules.lifecycle.events import (
    DomainEvent,
    EventType,
    ProposalSubmitted,
    ProjectApproved,
    ProjectRejected,
    ProjectCompleted,
    GuideAssigned,
    GuideUnassigned,
    ProgressSubmitted,
    DissertationSubmitted,
    MeetingScheduled,
    MeetingRescheduled,
    EvaluationRecorded,
)


@dataclass
class NotificationDraft:
    recipient_id: Optional[str]
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    link: Optional[str] = None


@dataclass
class DispatchResult:
    written: int = 0
    failed: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed


Builder = Callable[[DomainEvent], List[NotificationDraft]]


# ============================================
# Builders: one per event type
# ============================================

def _proposal_submitted(event: ProposalSubmitted) -> List[NotificationDraft]:
    return [NotificationDraft(
        event.hod_id,
        "New Project Proposal",
        f"{event.student_name} has submitted a new project proposal: {event.project_title}",
        NotificationType.PROPOSAL,
        f"proposals/{event.project_id}",
    )]


def _project_approved(event: ProjectApproved) -> List[NotificationDraft]:
    return [NotificationDraft(
        event.student_id,
        "Project Approved",
        f'Your project proposal "{event.project_title}" has been approved.',
        NotificationType.PROPOSAL,
        f"projects/{event.project_id}",
    )]


def _project_rejected(event: ProjectRejected) -> List[NotificationDraft]:
    return [NotificationDraft(
        event.student_id,
        "Project Rejected",
        f'Your project proposal "{event.project_title}" has been rejected. Please check the comments for details.',
        NotificationType.PROPOSAL,
        f"projects/{event.project_id}",
    )]


def _project_completed(event: ProjectCompleted) -> List[NotificationDraft]:
    return [NotificationDraft(
        event.student_id,
        "Project Completed",
        f'Your project "{event.project_title}" has been marked as completed.',
        NotificationType.SUCCESS,
        f"projects/{event.project_id}",
    )]


def _guide_assigned(event: GuideAssigned) -> List[NotificationDraft]:
    if event.project_id:
        to_guide = NotificationDraft(
            event.guide_id,
            "New Project Assignment",
            f"You have been assigned as a guide for project: {event.project_title}",
            NotificationType.PROJECT,
            f"projects/{event.project_id}",
        )
        to_student = NotificationDraft(
            event.student_id,
            "Guide Assigned",
            f"{event.guide_name} has been assigned as your guide for your project: {event.project_title}",
            NotificationType.PROJECT,
            "guide",
        )
    else:
        to_guide = NotificationDraft(
            event.guide_id,
            "New Student Assigned",
            f"{event.student_name} has been assigned to you as a student.",
            NotificationType.INFO,
            "students",
        )
        to_student = NotificationDraft(
            event.student_id,
            "Guide Assigned",
            f"{event.guide_name} has been assigned as your guide.",
            NotificationType.INFO,
            "guide",
        )
    return [to_guide, to_student]


def _guide_unassigned(event: GuideUnassigned) -> List[NotificationDraft]:
    suffix = f" for your project: {event.project_title}" if event.project_title else ""
    return [NotificationDraft(
        event.student_id,
        "Guide Unassigned",
        f"{event.guide_name} is no longer your guide{suffix}. A new guide will be assigned.",
        NotificationType.WARNING,
        "guide",
    )]


def _progress_submitted(event: ProgressSubmitted) -> List[NotificationDraft]:
    return [NotificationDraft(
        event.guide_id,
        "New Progress Update",
        f"{event.student_name} has submitted a progress update ({event.completion_percentage}%) "
        f"for project: {event.project_title}",
        NotificationType.PROGRESS,
        f"progress/{event.progress_id}",
    )]


def _dissertation_submitted(event: DissertationSubmitted) -> List[NotificationDraft]:
    message = f"{event.student_name} has submitted the final dissertation for project: {event.project_title}"
    return [
        NotificationDraft(recipient, "Final Dissertation Submitted", message,
                          NotificationType.SUBMISSION, f"submissions/{event.submission_id}")
        for recipient in (event.guide_id, event.hod_id)
    ]


def _format_when(event: MeetingScheduled) -> str:
    return event.scheduled_date.strftime("%Y-%m-%d %H:%M") if event.scheduled_date else "a date to be confirmed"


def _meeting_scheduled(event: MeetingScheduled) -> List[NotificationDraft]:
    return [NotificationDraft(
        event.student_id,
        "Meeting Scheduled",
        f"{event.guide_name} scheduled meeting {event.meeting_number} for project "
        f"{event.project_title} on {_format_when(event)}",
        NotificationType.MEETING,
        f"meetings/{event.meeting_id}",
    )]


def _meeting_rescheduled(event: MeetingRescheduled) -> List[NotificationDraft]:
    return [NotificationDraft(
        event.student_id,
        "Meeting Rescheduled",
        f"Meeting {event.meeting_number} for project {event.project_title} "
        f"has been rescheduled to {_format_when(event)}",
        NotificationType.MEETING,
        f"meetings/{event.meeting_id}",
    )]


def _evaluation_recorded(event: EvaluationRecorded) -> List[NotificationDraft]:
    verb = "updated" if event.updated else "recorded"
    return [NotificationDraft(
        event.student_id,
        "Evaluation Updated" if event.updated else "New Evaluation",
        f"Your {event.evaluation_type} evaluation has been {verb}. Overall grade: {event.overall_grade}",
        NotificationType.EVALUATION,
        "evaluation",
    )]


BUILDERS: Dict[EventType, Builder] = {
    EventType.PROPOSAL_SUBMITTED: _proposal_submitted,
    EventType.PROJECT_APPROVED: _project_approved,
    EventType.PROJECT_REJECTED: _project_rejected,
    EventType.PROJECT_COMPLETED: _project_completed,
    EventType.GUIDE_ASSIGNED: _guide_assigned,
    EventType.GUIDE_UNASSIGNED: _guide_unassigned,
    EventType.PROGRESS_SUBMITTED: _progress_submitted,
    EventType.DISSERTATION_SUBMITTED: _dissertation_submitted,
    EventType.MEETING_SCHEDULED: _meeting_scheduled,
    EventType.MEETING_RESCHEDULED: _meeting_rescheduled,
    EventType.EVALUATION_RECORDED: _evaluation_recorded,
}


def build_drafts(events: Iterable[DomainEvent]) -> List[NotificationDraft]:
    """Expand events into drafts, dropping drafts with no recipient (e.g. no HOD yet)"""
    drafts: List[NotificationDraft] = []
    for event in events:
        builder = BUILDERS.get(event.event_type)
        if builder is None:
            logger.warning(f"[Notify] No builder for event {event.event_type}")
            continue
        for draft in builder(event):
            if draft.recipient_id:
                drafts.append(draft)
            else:
                logger.info(
                    f"[Notify] {event.event_type.value}: no recipient for '{draft.title}', skipped",
                    extra={"event_type": "notification_skipped", "domain_event": event.event_type.value},
                )
    return drafts


class NotificationDispatcher:
    """Writes notifications for domain events on the caller's session"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def dispatch(self, *events: DomainEvent) -> DispatchResult:
        if not events:
            return DispatchResult()

        names = ",".join(event.event_type.value for event in events)
        try:
            drafts = build_drafts(events)
            written = await self._persist(drafts)
        except Exception as e:
            try:
                await self.db.rollback()
            except Exception as rollback_error:
                logger.log_error_with_context(rollback_error, context="notification rollback")
            logger.log_notification(names, delivered=0, failed=True, error_message=str(e))
            return DispatchResult(failed=True)

        logger.log_notification(names, delivered=written)
        return DispatchResult(written=written)

    async def _persist(self, drafts: List[NotificationDraft]) -> int:
        if not drafts:
            return 0
        self.db.add_all([
            Notification(
                recipient_id=draft.recipient_id,
                title=draft.title,
                message=draft.message,
                type=draft.type,
                link=draft.link,
            )
            for draft in drafts
        ])
        await self.db.commit()
        return len(drafts)
