# API endpoints
from . import auth, users, projects, meetings, faculty, hod, students, notifications, health

__all__ = ["auth", "users", "projects", "meetings", "faculty", "hod", "students", "notifications", "health"]
