"""
Authentication Pipeline Models.

Pydantic models for the auth request/response contracts between
``AuthService``, the ``SessionStore`` and the views.  Every auth
operation returns a structured, inspectable result rather than raw
strings or exception side-channels.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel

from userconsole.models.enums import AuthState, ErrorCode
from userconsole.models.user import UserProfile


# ---------------------------------------------------------------------------
# Supabase error mapping
# ---------------------------------------------------------------------------

# Keys are matched against the GoTrue error ``code`` first, then as a
# substring of the lower-cased error message.  The messages are shown only
# when the backend error carries no text of its own.
SUPABASE_ERROR_MAP: dict[str, tuple[ErrorCode, str]] = {
    "invalid_credentials": (
        ErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "invalid login credentials": (
        ErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "invalid_grant": (
        ErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "user_not_found": (
        ErrorCode.INVALID_CREDENTIALS,
        "Incorrect email or password.",
    ),
    "email_not_confirmed": (
        ErrorCode.EMAIL_NOT_CONFIRMED,
        "Please confirm your email address before signing in.",
    ),
    "email not confirmed": (
        ErrorCode.EMAIL_NOT_CONFIRMED,
        "Please confirm your email address before signing in.",
    ),
    "user_already_exists": (
        ErrorCode.EMAIL_ALREADY_EXISTS,
        "An account with this email already exists. Try signing in.",
    ),
    "user already registered": (
        ErrorCode.EMAIL_ALREADY_EXISTS,
        "An account with this email already exists. Try signing in.",
    ),
    "weak_password": (
        ErrorCode.WEAK_PASSWORD,
        "Password is too weak. Choose a longer password.",
    ),
    "password should be at least": (
        ErrorCode.WEAK_PASSWORD,
        "Password is too weak. Choose a longer password.",
    ),
}


# ---------------------------------------------------------------------------
# Session reference
# ---------------------------------------------------------------------------

class SessionInfo(BaseModel):
    """Read-only reference to a Supabase session.

    Replaced wholesale on every auth event; never mutated.
    """

    user_id: str
    email: Optional[str] = None
    access_token: str = ""
    refresh_token: str = ""
    expires_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @classmethod
    def from_supabase(cls, session: Any) -> "SessionInfo":
        """Build from a GoTrue ``Session`` object."""
        expires_at: Optional[datetime] = None
        if getattr(session, "expires_at", None):
            expires_at = datetime.fromtimestamp(session.expires_at, tz=timezone.utc)
        return cls(
            user_id=session.user.id,
            email=getattr(session.user, "email", None),
            access_token=session.access_token or "",
            refresh_token=session.refresh_token or "",
            expires_at=expires_at,
        )


# ---------------------------------------------------------------------------
# Validation result
# ---------------------------------------------------------------------------

class ValidationResult(BaseModel):
    """Result of a single client-side field validation check.

    Attributes
    ----------
    is_valid:
        ``True`` when the value passes the validation rule.
    error_message:
        Human-readable description of the failure, or ``None`` on success.
    """

    is_valid: bool
    error_message: Optional[str] = None


# ---------------------------------------------------------------------------
# Unified auth response
# ---------------------------------------------------------------------------

class AuthResult(BaseModel):
    """Unified response for sign-up and sign-in.

    Views inspect ``success`` to choose between the happy path and an
    inline error message, and ``error_code`` to decide on extra
    controls (e.g. a "sign in instead" link for duplicate emails).

    Attributes
    ----------
    success:
        ``True`` when the operation completed without error.
    error_code:
        Structured error category (``None`` on success).
    error_message:
        Human-readable error description (``None`` on success).
    user_id:
        The Supabase UUID of the registered / authenticated identity.
    email:
        The normalised email address.
    """

    success: bool
    error_code: Optional[ErrorCode] = None
    error_message: Optional[str] = None
    user_id: Optional[str] = None
    email: Optional[str] = None


# ---------------------------------------------------------------------------
# Store snapshot
# ---------------------------------------------------------------------------

class AuthSnapshot(BaseModel):
    """Immutable view of the session store delivered to observers."""

    state: AuthState
    session: Optional[SessionInfo] = None
    profile: Optional[UserProfile] = None
    version: int = 0

    model_config = {"frozen": True}

    @property
    def is_authenticated(self) -> bool:
        return self.session is not None

    @property
    def is_admin(self) -> bool:
        return self.profile is not None and self.profile.is_admin
