from pydantic import Field, field_validator
from typing import Optional, List, Any
from datetime import datetime

from app.models.project import ProjectStatus
from app.models.submission import SubmissionStatus
from app.schemas.common import RequestModel, ORMModel
from app.schemas.auth import UserSummary


def split_csv(value: Any) -> Any:
    """'Go, Rust' -> ['Go', 'Rust']; lists pass through unchanged"""
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


class ProposalCreate(RequestModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    problem_statement: str = Field(..., min_length=1)
    technologies: List[str] = Field(..., min_length=1)
    expected_outcome: str = Field(..., min_length=1)
    department: Optional[str] = Field(None, max_length=100)

    @field_validator("technologies", mode="before")
    @classmethod
    def parse_technologies(cls, v):
        return split_csv(v)


class ProjectStatusUpdate(RequestModel):
    status: str = Field(..., min_length=1)
    comments: Optional[str] = None
    guide: Optional[str] = None


class ProjectUpdate(RequestModel):
    """Partial update; which keys a caller may send depends on their role"""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    problem_statement: Optional[str] = Field(None, min_length=1)
    technologies: Optional[List[str]] = None
    expected_outcome: Optional[str] = Field(None, min_length=1)
    feedback: Optional[str] = None
    guide_id: Optional[str] = None

    @field_validator("technologies", mode="before")
    @classmethod
    def parse_technologies(cls, v):
        return split_csv(v)


class ProjectProgressUpdate(RequestModel):
    progress: int = Field(..., ge=0, le=100)


class PanelUpdate(RequestModel):
    panel_member_ids: List[str] = Field(default_factory=list)


class ProgressCreate(RequestModel):
    project_id: str
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    completion_percentage: int = Field(..., ge=0, le=100)
    challenges: Optional[str] = None
    next_steps: Optional[str] = None


class ProjectResponse(ORMModel):
    id: str
    title: str
    description: str
    problem_statement: str
    expected_outcome: str
    technologies: List[str]
    department: str
    status: ProjectStatus
    progress: int
    feedback: Optional[str] = None
    student_id: str
    guide_id: Optional[str] = None
    hod_assigned_id: Optional[str] = None
    panel_member_ids: List[str] = []
    student: Optional[UserSummary] = None
    guide: Optional[UserSummary] = None
    created_at: datetime
    last_updated: datetime


class ProgressResponse(ORMModel):
    id: str
    project_id: str
    student_id: str
    title: str
    description: str
    completion_percentage: int
    challenges: Optional[str] = None
    next_steps: Optional[str] = None
    created_at: datetime


class SubmissionResponse(ORMModel):
    id: str
    project_id: str
    student_id: str
    title: str
    abstract: str
    keywords: List[str]
    file_url: str
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    status: SubmissionStatus
    created_at: datetime
