"""
Unit Tests for the project status state machine
"""
import pytest

from app.core.exceptions import InvalidStatusError, InvalidStatusTransitionError
from app.models.project import Project, ProjectStatus
from app.modules.lifecycle.state_machine import (
    apply_transition,
    can_transition,
    parse_review_status,
)


class TestTransitions:

    @pytest.mark.parametrize("current,target", [
        (ProjectStatus.PENDING, ProjectStatus.APPROVED),
        (ProjectStatus.PENDING, ProjectStatus.REJECTED),
        (ProjectStatus.APPROVED, ProjectStatus.SUBMITTED),
        (ProjectStatus.SUBMITTED, ProjectStatus.COMPLETED),
    ])
    def test_allowed(self, current, target):
        assert can_transition(current, target)

    @pytest.mark.parametrize("current,target", [
        (ProjectStatus.REJECTED, ProjectStatus.APPROVED),
        (ProjectStatus.COMPLETED, ProjectStatus.PENDING),
        (ProjectStatus.APPROVED, ProjectStatus.COMPLETED),
        (ProjectStatus.PENDING, ProjectStatus.SUBMITTED),
        (ProjectStatus.APPROVED, ProjectStatus.PENDING),
    ])
    def test_refused(self, current, target):
        assert not can_transition(current, target)

    def test_apply_returns_previous_and_sets_status(self):
        project = Project(id="p1", title="T", status=ProjectStatus.PENDING)

        previous = apply_transition(project, ProjectStatus.APPROVED, actor_id="h1")

        assert previous == ProjectStatus.PENDING
        assert project.status == ProjectStatus.APPROVED
        assert project.last_updated is not None

    def test_apply_refused_leaves_status(self):
        project = Project(id="p1", title="T", status=ProjectStatus.REJECTED)

        with pytest.raises(InvalidStatusTransitionError) as exc_info:
            apply_transition(project, ProjectStatus.APPROVED)

        assert exc_info.value.status_code == 400
        assert project.status == ProjectStatus.REJECTED


class TestParseReviewStatus:

    def test_case_and_whitespace_insensitive(self):
        assert parse_review_status(" Approved ") == ProjectStatus.APPROVED

    def test_unknown_value(self):
        with pytest.raises(InvalidStatusError) as exc_info:
            parse_review_status("archived")

        assert exc_info.value.details["allowed"] == ["approved", "completed", "rejected"]

    def test_submitted_needs_upload(self):
        with pytest.raises(InvalidStatusError):
            parse_review_status("submitted")

    def test_pending_is_parsed_but_never_reachable(self):
        assert parse_review_status("pending") == ProjectStatus.PENDING
        assert not can_transition(ProjectStatus.APPROVED, ProjectStatus.PENDING)
