# Re-export all models for convenient imports
from app.models.user import User, UserRole
from app.models.project import Project, ProjectStatus, ACTIVE_STATUSES
from app.models.meeting import Meeting, MeetingStatus, TaskStatus
from app.models.progress import Progress
from app.models.submission import Submission, SubmissionStatus
from app.models.evaluation import Evaluation, EvaluationType, SCORE_FIELDS
from app.models.notification import Notification, NotificationType

__all__ = [
    # User
    "User",
    "UserRole",
    # Project
    "Project",
    "ProjectStatus",
    "ACTIVE_STATUSES",
    "Progress",
    "Submission",
    "SubmissionStatus",
    # Meetings
    "Meeting",
    "MeetingStatus",
    "TaskStatus",
    # Evaluations
    "Evaluation",
    "EvaluationType",
    "SCORE_FIELDS",
    # Notifications
    "Notification",
    "NotificationType",
]
