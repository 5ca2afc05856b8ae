"""
Thinkify exceptions.

Each carries the HTTP status it maps to; the app-level handler turns any
ThinkifyError into the standard failure envelope, with ``details`` merged in.
"""

from typing import Optional, Any, Dict, List


class ThinkifyError(Exception):
    """Base exception for all Thinkify errors"""

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


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(ThinkifyError):
    """User authentication failed"""

    status_code = 401

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class TokenExpiredError(AuthenticationError):
    """JWT token has expired"""

    def __init__(self):
        super().__init__("Token expired")
        self.code = "TOKEN_EXPIRED"


class InvalidTokenError(AuthenticationError):
    """JWT token is invalid"""

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)
        self.code = "INVALID_TOKEN"


class AuthorizationError(ThinkifyError):
    """User not authorized for this action"""

    status_code = 403

    def __init__(self, message: str = "Not authorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, code="NOT_AUTHORIZED", details=details)


class RoleNotAllowedError(AuthorizationError):
    """User role is outside the route's allow-list"""

    def __init__(self, user_role: str, allowed_roles: List[str]):
        super().__init__(
            f"Access denied. Required roles: {', '.join(allowed_roles)}",
            details={"userRole": user_role, "allowedRoles": allowed_roles}
        )
        self.code = "ROLE_NOT_ALLOWED"


class InsufficientPermissionsError(AuthorizationError):
    """User lacks one or more required permissions"""

    def __init__(self, user_permissions: List[str], required_permissions: List[str]):
        super().__init__(
            f"Insufficient permissions. Required: {', '.join(required_permissions)}",
            details={
                "userPermissions": user_permissions,
                "requiredPermissions": required_permissions,
            }
        )
        self.code = "INSUFFICIENT_PERMISSIONS"


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(ThinkifyError):
    """Base class for not found errors"""

    status_code = 404

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} not found",
            code=f"{resource_type.upper()}_NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class UserNotFoundError(ResourceNotFoundError):
    """User not found"""

    def __init__(self, user_id: str):
        super().__init__("User", user_id)


class AssignmentNotFoundError(ResourceNotFoundError):
    """Assignment not found"""

    def __init__(self, assignment_id: str):
        super().__init__("Assignment", assignment_id)


class SubmissionNotFoundError(ResourceNotFoundError):
    """No submission from the given student"""

    def __init__(self, student_id: str):
        super().__init__("Submission", student_id)


class PollNotFoundError(ResourceNotFoundError):
    """Poll not found"""

    def __init__(self, poll_id: str):
        super().__init__("Poll", poll_id)


# ============================================
# Validation Errors
# ============================================

class ValidationError(ThinkifyError):
    """A model rejected a value or a state change.

    Raised from model methods; controllers catch it and answer 500 with their
    own message, exposing the detail only in development mode.
    """

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class PollVoteError(ValidationError):
    """A ballot was rejected by the poll"""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "VOTE_REJECTED"


class SubmissionError(ValidationError):
    """A submission was rejected by the assignment"""

    def __init__(self, message: str):
        super().__init__(message)
        self.code = "SUBMISSION_REJECTED"


class InvalidStatusTransitionError(ValidationError):
    """Requested status change is not an allowed transition"""

    def __init__(self, current: str, requested: str):
        super().__init__(f"Cannot change status from '{current}' to '{requested}'", field="status")
        self.code = "INVALID_STATUS_TRANSITION"
        self.details.update({"current": current, "requested": requested})


class ConflictError(ThinkifyError):
    """Unique value already taken"""

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="CONFLICT", details=details)
