from app.services.user_service import UserService
from app.services.project_service import ProjectService
from app.services.meeting_service import MeetingService
from app.services.evaluation_service import EvaluationService, compute_overall_grade
from app.services.notification_service import NotificationService
from app.services.student_service import StudentService

__all__ = [
    # Accounts
    "UserService",
    "StudentService",
    # Projects and their children
    "ProjectService",
    "MeetingService",
    "EvaluationService",
    "compute_overall_grade",
    "NotificationService",
]
