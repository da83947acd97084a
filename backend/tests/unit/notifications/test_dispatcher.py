"""
Unit Tests for the notification dispatcher
"""
from datetime import datetime

from sqlalchemy import select

from app.models import Notification, NotificationType, UserRole
from app.modules.lifecycle.events import (
    DissertationSubmitted,
    GuideAssigned,
    MeetingRescheduled,
    ProposalSubmitted,
)
from app.modules.notifications.dispatcher import NotificationDispatcher, build_drafts
from tests.conftest import create_user


class TestBuildDrafts:

    def test_proposal_goes_to_hod(self):
        drafts = build_drafts([ProposalSubmitted(project_id="p1", project_title="Edge AI",
                                                 student_name="Asha", hod_id="h1")])

        assert len(drafts) == 1
        assert drafts[0].recipient_id == "h1"
        assert drafts[0].type == NotificationType.PROPOSAL
        assert drafts[0].message == "Asha has submitted a new project proposal: Edge AI"

    def test_missing_recipient_skipped(self):
        drafts = build_drafts([ProposalSubmitted(project_id="p1", project_title="Edge AI",
                                                 student_name="Asha", hod_id=None)])

        assert drafts == []

    def test_guide_assignment_notifies_both_sides(self):
        drafts = build_drafts([GuideAssigned(student_id="s1", student_name="Asha", guide_id="f1",
                                             guide_name="Dr. Rao", project_id="p1", project_title="Edge AI")])

        assert {draft.recipient_id for draft in drafts} == {"s1", "f1"}

    def test_dissertation_to_guide_and_hod(self):
        drafts = build_drafts([DissertationSubmitted(project_id="p1", project_title="Edge AI",
                                                     submission_id="x1", student_name="Asha",
                                                     guide_id="f1", hod_id=None)])

        assert [draft.recipient_id for draft in drafts] == ["f1"]

    def test_reschedule_mentions_new_date(self):
        drafts = build_drafts([MeetingRescheduled(meeting_id="m1", meeting_number=2,
                                                  scheduled_date=datetime(2030, 3, 4, 15, 30),
                                                  project_title="Edge AI", student_id="s1",
                                                  guide_name="Dr. Rao")])

        assert drafts[0].title == "Meeting Rescheduled"
        assert "2030-03-04 15:30" in drafts[0].message


class TestNotificationDispatcher:

    async def test_dispatch_writes_rows(self, db_session):
        hod = await create_user(db_session, UserRole.HOD)

        result = await NotificationDispatcher(db_session).dispatch(
            ProposalSubmitted(project_id="p1", project_title="Edge AI", student_name="Asha", hod_id=hod.id)
        )

        assert result.ok
        assert result.written == 1
        rows = await db_session.execute(select(Notification).where(Notification.recipient_id == hod.id))
        notification = rows.scalar_one()
        assert notification.read is False
        assert notification.link == "proposals/p1"

    async def test_no_events_is_a_no_op(self, db_session):
        result = await NotificationDispatcher(db_session).dispatch()

        assert result.ok
        assert result.written == 0

    async def test_failure_is_swallowed(self, db_session, monkeypatch):
        async def broken_persist(self, drafts):
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(NotificationDispatcher, "_persist", broken_persist)

        result = await NotificationDispatcher(db_session).dispatch(
            ProposalSubmitted(project_id="p1", project_title="Edge AI", student_name="Asha", hod_id="h1")
        )

        assert not result.ok
        assert result.failed
