"""
Unit Tests for Project Schemas
"""
import pytest
from pydantic import ValidationError

from app.models.user import UserRole, missing_role_fields
from app.schemas.auth import UserRegister
from app.schemas.meeting import MeetingCreate
from app.schemas.project import ProposalCreate, split_csv


def proposal(**overrides):
    data = {
        "title": "Federated learning on edge devices",
        "description": "Train models without centralising data",
        "problemStatement": "Privacy constraints block data pooling",
        "technologies": ["Python", "PyTorch"],
        "expectedOutcome": "A working prototype",
        "department": "CSE",
    }
    data.update(overrides)
    return data


class TestProposalCreate:

    def test_camel_case_accepted(self):
        schema = ProposalCreate(**proposal())

        assert schema.problem_statement == "Privacy constraints block data pooling"
        assert schema.expected_outcome == "A working prototype"

    def test_snake_case_accepted(self):
        data = proposal()
        data["problem_statement"] = data.pop("problemStatement")

        assert ProposalCreate(**data).problem_statement

    def test_comma_separated_technologies(self):
        schema = ProposalCreate(**proposal(technologies="Go, Rust"))

        assert schema.technologies == ["Go", "Rust"]

    def test_list_technologies_unchanged(self):
        schema = ProposalCreate(**proposal(technologies=["Go", "Rust"]))

        assert schema.technologies == ["Go", "Rust"]

    def test_empty_technologies_rejected(self):
        with pytest.raises(ValidationError):
            ProposalCreate(**proposal(technologies=" , "))

    def test_blank_title_rejected(self):
        with pytest.raises(ValidationError):
            ProposalCreate(**proposal(title="   "))

    def test_department_optional(self):
        data = proposal()
        del data["department"]

        assert ProposalCreate(**data).department is None

    def test_split_csv_passes_non_strings(self):
        assert split_csv(None) is None
        assert split_csv(["a"]) == ["a"]


class TestUserRegister:

    def test_student_requires_branch_and_course(self):
        with pytest.raises(ValidationError) as exc_info:
            UserRegister(full_name="Asha", email="asha@example.com", password="secret1", role="student")

        assert "branch" in str(exc_info.value)
        assert "course" in str(exc_info.value)

    def test_hod_department_defaults_to_branch(self):
        user = UserRegister(full_name="Ravi", email="ravi@example.com", password="secret1",
                            role="hod", branch="CSE")

        assert user.department == "CSE"

    def test_admin_cannot_self_register(self):
        with pytest.raises(ValidationError):
            UserRegister(full_name="Root", email="root@example.com", password="secret1", role="admin")

    def test_department_and_branch_stand_in_for_each_other(self):
        assert missing_role_fields(UserRole.HOD, {"department": "CSE"}) == []
        assert missing_role_fields(UserRole.STUDENT, {"branch": " ", "course": "M.Tech"}) == ["branch"]
        assert missing_role_fields(UserRole.FACULTY, {}) == []

    def test_faculty_needs_no_academic_fields(self):
        user = UserRegister(full_name="Meena", email="meena@example.com", password="secret1", role="faculty")

        assert user.branch is None


class TestMeetingCreate:

    @pytest.mark.parametrize("number", [0, 5])
    def test_meeting_number_range(self, number):
        with pytest.raises(ValidationError):
            MeetingCreate(projectId="p1", meetingNumber=number, scheduledDate="2030-01-01T10:00:00")

    def test_duration_range(self):
        with pytest.raises(ValidationError):
            MeetingCreate(projectId="p1", meetingNumber=1, scheduledDate="2030-01-01T10:00:00",
                          durationMinutes=10)
