from typing import List, Optional

from app.schemas.common import ORMModel
from app.schemas.auth import UserSummary
from app.schemas.project import ProjectResponse, ProgressResponse, SubmissionResponse
from app.schemas.meeting import MeetingResponse
from app.schemas.notification import NotificationResponse


class StudentDashboard(ORMModel):
    projects: List[ProjectResponse]
    upcoming_meetings: List[MeetingResponse]
    guide: Optional[UserSummary] = None
    notifications: List[NotificationResponse]
    progress_this_month: List[ProgressResponse]


class FinalSubmissionStatus(ORMModel):
    project: ProjectResponse
    submission: Optional[SubmissionResponse] = None
