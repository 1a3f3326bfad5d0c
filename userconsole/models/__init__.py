"""
Data Models Package.

Re-exports all Pydantic models:
    from userconsole.models import User, Role, UserProfile, RoleResolved, RoleMissing
    from userconsole.models import AuthState, ErrorCode, RoleName
    from userconsole.models import AuthResult, AuthSnapshot, SessionInfo, ServiceResult
"""

from userconsole.models.enums import AuthState, ErrorCode, RoleName
from userconsole.models.user import Role, RoleMissing, RoleResolved, User, UserProfile
from userconsole.models.auth_models import (
    AuthResult,
    AuthSnapshot,
    SessionInfo,
    ValidationResult,
)
from userconsole.models.service_models import AvatarUpload, ServiceResult

__all__ = [
    "AuthState",
    "ErrorCode",
    "RoleName",
    "Role",
    "RoleMissing",
    "RoleResolved",
    "User",
    "UserProfile",
    "AuthResult",
    "AuthSnapshot",
    "SessionInfo",
    "ValidationResult",
    "AvatarUpload",
    "ServiceResult",
]
