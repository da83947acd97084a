from pydantic import EmailStr, Field
from typing import Optional, List

from app.models.user import UserRole
from app.schemas.common import RequestModel, ORMModel
from app.schemas.auth import UserResponse, UserSummary


class AdminUserCreate(RequestModel):
    full_name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: UserRole
    branch: Optional[str] = None
    department: Optional[str] = None
    course: Optional[str] = None


class AdminUserUpdate(RequestModel):
    full_name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[UserRole] = None
    branch: Optional[str] = None
    department: Optional[str] = None
    course: Optional[str] = None


class StudentOverview(ORMModel):
    """A student together with their guide and most recent project"""
    student: UserResponse
    guide: Optional[UserSummary] = None
    project: Optional["ProjectResponse"] = None


class StudentDetails(ORMModel):
    """HOD view of one student"""
    student: UserResponse
    guide: Optional[UserSummary] = None
    projects: List["ProjectResponse"] = []
    evaluations: List["EvaluationResponse"] = []


class GuideAssignmentResponse(ORMModel):
    message: str
    student: UserResponse
    guide: UserSummary


class UserDeletedResponse(ORMModel):
    message: str
    detached_projects: List[str] = []


from app.schemas.project import ProjectResponse  # noqa: E402
from app.schemas.evaluation import EvaluationResponse  # noqa: E402

StudentOverview.model_rebuild()
StudentDetails.model_rebuild()
