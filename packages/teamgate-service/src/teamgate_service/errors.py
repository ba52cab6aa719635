"""Error taxonomy shared by the authorization core and the REST layer.

Every error carries the HTTP status and the stable ``code`` string the
frontend switches on. ``AccessDenied`` and ``PermissionDenied`` both surface
as 403 but keep distinct codes so logs and clients can tell "not a member"
from "member without the required role".
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    # Authentication & authorization
    AUTH_REQUIRED = "AUTH_REQUIRED"
    AUTH_INVALID = "AUTH_INVALID"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    TEAM_MEMBERSHIP_REQUIRED = "TEAM_MEMBERSHIP_REQUIRED"
    TEAM_ADMIN_REQUIRED = "TEAM_ADMIN_REQUIRED"

    # Validation
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Resources
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    RESOURCE_CONFLICT = "RESOURCE_CONFLICT"

    # System
    DATABASE_ERROR = "DATABASE_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class TeamgateError(Exception):
    """Base class for errors rendered as ``{error, code, details?, ...}``."""

    status_code: int = 500
    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    default_message: str = "An unexpected error occurred"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class AuthRequired(TeamgateError):
    status_code = 401
    code = ErrorCode.AUTH_REQUIRED
    default_message = "Authentication required"


class AuthInvalid(TeamgateError):
    status_code = 401
    code = ErrorCode.AUTH_INVALID
    default_message = "Invalid authentication credentials"


class AccessDenied(TeamgateError):
    """The caller holds no (sufficient) membership for the team.

    Raised identically whether the team exists or not.
    """

    status_code = 403
    code = ErrorCode.TEAM_MEMBERSHIP_REQUIRED
    default_message = "Team membership required"

    def __init__(
        self,
        message: str | None = None,
        code: ErrorCode = ErrorCode.TEAM_MEMBERSHIP_REQUIRED,
        reason: str = "not_member",
    ) -> None:
        super().__init__(message)
        self.code = code
        self.reason = reason

    @classmethod
    def admin_required(cls) -> AccessDenied:
        return cls(
            "Team administrator access required",
            code=ErrorCode.TEAM_ADMIN_REQUIRED,
            reason="not_admin",
        )


class PermissionDenied(TeamgateError):
    status_code = 403
    code = ErrorCode.PERMISSION_DENIED
    default_message = "Insufficient permissions"

    def __init__(self, message: str | None = None, required_permission: str | None = None) -> None:
        details = {"required_permission": required_permission} if required_permission else None
        super().__init__(message, details)
        self.required_permission = required_permission


class ValidationError(TeamgateError):
    status_code = 400
    code = ErrorCode.VALIDATION_ERROR
    default_message = "Invalid request"


class ResourceNotFound(TeamgateError):
    status_code = 404
    code = ErrorCode.RESOURCE_NOT_FOUND
    default_message = "Requested resource not found"

    def __init__(self, resource_type: str | None = None, resource_id: str | None = None) -> None:
        if resource_type:
            message = f"{resource_type}{f' with ID {resource_id}' if resource_id else ''} not found"
        else:
            message = None
        super().__init__(message, {"resource_type": resource_type, "resource_id": resource_id})


class ResourceConflict(TeamgateError):
    status_code = 409
    code = ErrorCode.RESOURCE_CONFLICT
    default_message = "Resource conflict"


class DatabaseError(TeamgateError):
    status_code = 500
    code = ErrorCode.DATABASE_ERROR
    default_message = "Database operation failed"

    def __init__(self, message: str | None = None, original: BaseException | None = None) -> None:
        super().__init__(message)
        self.original = original


class InternalError(TeamgateError):
    pass


def validation_error(message: str, field: str, **details: Any) -> ValidationError:
    """Build a field-level ``ValidationError``."""
    return ValidationError(message, {"field": field, **details})
