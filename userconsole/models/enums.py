"""
Shared Enumerations for the User Console Models.

StrEnum values compare equal to their string equivalents, so
``profile.role_name == RoleName.ADMIN`` works against raw row data.
"""

from __future__ import annotations
from enum import StrEnum


class RoleName(StrEnum):
    """Names of the pre-seeded ``roles`` rows the console knows about.

    Other role rows may exist; they are listed and assigned like any
    other but never unlock admin views.
    """

    ADMIN = "admin"
    USER = "user"


class AuthState(StrEnum):
    """States of the session/profile store.

    ``PROFILE_UNAVAILABLE`` means a session exists but the profile fetch
    failed or found no row; the profile is ``None`` until the next
    successful refresh.
    """

    UNINITIALIZED = "UNINITIALIZED"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    AUTHENTICATED_LOADING = "AUTHENTICATED_LOADING"
    AUTHENTICATED_READY = "AUTHENTICATED_READY"
    PROFILE_UNAVAILABLE = "PROFILE_UNAVAILABLE"


class ErrorCode(StrEnum):
    """Exhaustive enumeration of failure categories returned to views."""

    VALIDATION_ERROR = "validation_error"
    INVALID_CREDENTIALS = "invalid_credentials"
    EMAIL_ALREADY_EXISTS = "email_already_exists"
    WEAK_PASSWORD = "weak_password"
    EMAIL_NOT_CONFIRMED = "email_not_confirmed"
    PROFILE_ERROR = "profile_error"
    PROFILE_INSERT_FAILED = "profile_insert_failed"
    PARTIAL_SIGNUP = "partial_signup"
    STORAGE_ERROR = "storage_error"
    NOT_FOUND = "not_found"
    PERMISSION_DENIED = "permission_denied"
    NETWORK_ERROR = "network_error"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    UNKNOWN_ERROR = "unknown_error"
