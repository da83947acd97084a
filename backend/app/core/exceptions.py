"""
Domain Exceptions for Disserto
==============================

Services raise these; the handlers registered in app.main translate them into
JSON error bodies of the form::

    {"success": false, "message": "...", "code": "...", "details": {...}}

Usage:
    from app.core.exceptions import ProjectNotFoundError, ActiveProposalExistsError

    if not project:
        raise ProjectNotFoundError(project_id)
"""

from typing import Optional, Any, Dict, Iterable


class DissertoError(Exception):
    """Base exception for all Disserto errors"""

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Validation Errors (400)
# ============================================

class ValidationError(DissertoError):
    """Input validation failed"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class MissingFieldsError(ValidationError):
    """One or more required fields are absent or blank"""

    def __init__(self, fields: Iterable[str]):
        fields = list(fields)
        super().__init__(f"Please provide all required fields: {', '.join(fields)}")
        self.code = "MISSING_FIELDS"
        self.details = {"fields": fields}


class InvalidStatusError(ValidationError):
    """Status value outside the accepted set"""

    def __init__(self, value: str, allowed: Iterable[str]):
        allowed = list(allowed)
        super().__init__(f"Invalid status '{value}'. Allowed: {', '.join(allowed)}", field="status")
        self.code = "INVALID_STATUS"
        self.details["allowed"] = allowed


class InvalidFileTypeError(ValidationError):
    """File type not allowed"""

    def __init__(self, file_type: str, allowed_types: list):
        super().__init__(
            f"File type '{file_type}' not allowed. Allowed: {', '.join(allowed_types)}"
        )
        self.code = "INVALID_FILE_TYPE"
        self.details = {"file_type": file_type, "allowed_types": allowed_types}


class FileTooLargeError(ValidationError):
    """Uploaded file exceeds the configured limit"""

    def __init__(self, size: int, max_size: int):
        super().__init__(f"File too large. Maximum size is {max_size // 1024 // 1024}MB")
        self.code = "FILE_TOO_LARGE"
        self.details = {"size": size, "max_size": max_size}


# ============================================
# State-conflict Errors (400)
# ============================================

class StateConflictError(DissertoError):
    """The request is well formed but the current state forbids it"""

    status_code = 400

    def __init__(self, message: str, code: str = "STATE_CONFLICT", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code=code, details=details)


class ActiveProposalExistsError(StateConflictError):
    """Student already holds a pending or approved project"""

    def __init__(self, project_id: str, status: str):
        super().__init__(
            "You already have an active project proposal",
            code="ACTIVE_PROPOSAL_EXISTS",
            details={"project_id": project_id, "status": status},
        )


class InvalidStatusTransitionError(StateConflictError):
    """Project status change not allowed from the current status"""

    def __init__(self, current: str, target: str):
        super().__init__(
            f"Cannot change project status from '{current}' to '{target}'",
            code="INVALID_STATUS_TRANSITION",
            details={"current_status": current, "target_status": target},
        )


class ProjectNotApprovedError(StateConflictError):
    """Final submission attempted before approval"""

    def __init__(self, status: str):
        super().__init__(
            "Project must be approved before final submission",
            code="PROJECT_NOT_APPROVED",
            details={"status": status},
        )


class InvalidGuideError(StateConflictError):
    """Referenced guide is missing or is not a faculty member"""

    def __init__(self, guide_id: str):
        super().__init__(
            "Invalid guide selected. Guide must be a faculty member",
            code="INVALID_GUIDE",
            details={"guide_id": guide_id},
        )


class DuplicateEmailError(StateConflictError):
    def __init__(self, email: str):
        super().__init__("User already exists with this email", code="EMAIL_TAKEN", details={"email": email})


# ============================================
# Authentication Errors (401)
# ============================================

class AuthenticationError(DissertoError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Not authorized, no token"):
        super().__init__(message, code="AUTH_FAILED")


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid, expired or points at a missing user"""

    def __init__(self, message: str = "Not authorized, token failed"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class InvalidCredentialsError(AuthenticationError):
    def __init__(self):
        super().__init__("Invalid email or password")
        self.code = "INVALID_CREDENTIALS"


# ============================================
# Authorization Errors (403)
# ============================================

class AuthorizationError(DissertoError):
    """Role or ownership check failed"""

    status_code = 403

    def __init__(
        self,
        message: str = "Not authorized",
        actor_role: Optional[str] = None,
        allowed_roles: Optional[Iterable[str]] = None,
        action: Optional[str] = None,
    ):
        details: Dict[str, Any] = {}
        if actor_role:
            details["actor_role"] = actor_role
        if allowed_roles is not None:
            details["allowed_roles"] = sorted(allowed_roles)
        if action:
            details["action"] = action
        super().__init__(message, code="NOT_AUTHORIZED", details=details)


class ForbiddenFieldsError(AuthorizationError):
    """Caller tried to set fields their role may not mutate"""

    def __init__(self, fields: Iterable[str], actor_role: str):
        fields = sorted(fields)
        super().__init__(
            f"Your role ({actor_role}) may not update: {', '.join(fields)}",
            actor_role=actor_role,
        )
        self.code = "FORBIDDEN_FIELDS"
        self.details["fields"] = fields


# ============================================
# Resource Errors (404)
# ============================================

class ResourceNotFoundError(DissertoError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class ProjectNotFoundError(ResourceNotFoundError):
    def __init__(self, project_id: str):
        super().__init__("Project", project_id)


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class MeetingNotFoundError(ResourceNotFoundError):
    def __init__(self, meeting_id: str):
        super().__init__("Meeting", meeting_id)


class TaskNotFoundError(ResourceNotFoundError):
    def __init__(self, task_id: str):
        super().__init__("Task", task_id)


class NotificationNotFoundError(ResourceNotFoundError):
    def __init__(self, notification_id: str):
        super().__init__("Notification", notification_id)


class StudentNotAssignedError(ResourceNotFoundError):
    """Student is not assigned to the acting faculty member"""

    def __init__(self, student_id: str):
        super().__init__("Student", student_id)
        self.message = "Student not found or not assigned to you"
        self.code = "STUDENT_NOT_ASSIGNED"


# ============================================
# Infrastructure Errors (500)
# ============================================

class StorageError(DissertoError):
    """Saving an uploaded file failed"""

    def __init__(self, message: str):
        super().__init__(message, code="STORAGE_ERROR")


def error_response(error: DissertoError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    body = {"success": False}
    body.update(error.to_dict())
    return body
