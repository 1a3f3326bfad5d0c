"""
Authentication Service.

Single orchestrator for every authentication concern of the console:
startup session discovery, the Supabase auth-change subscription,
sign-up, sign-in, sign-out and profile refresh.

Sits between the views and the Supabase client so that forms remain thin
handlers.  It is the only writer of the ``SessionStore``: both the
startup query and every auth-change notification converge on
``_sync_session``, which sets the session and fetches the joined profile
under a version stamp.

All view-facing methods return typed ``AuthResult`` or
``ValidationResult`` models; views never inspect raw exceptions.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from supabase import AuthRetryableError

from userconsole.auth import SessionStore
from userconsole.backend import BackendClient
from userconsole.config import AppConfig
from userconsole.exceptions import NotFoundError, ProfileError
from userconsole.logger import StructuredLogger
from userconsole.models.auth_models import (
    SUPABASE_ERROR_MAP,
    AuthResult,
    SessionInfo,
    ValidationResult,
)
from userconsole.models.enums import ErrorCode
from userconsole.models.user import UserProfile
from userconsole.repositories.user_repository import UserRepository
from userconsole.services.base_service import BaseService


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_EMAIL_RE: re.Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)+$"
)

# Matches C0 controls (U+0000–U+001F), DEL (U+007F), and C1 controls (U+0080–U+009F).
_CONTROL_CHAR_RE: re.Pattern[str] = re.compile(r"[\x00-\x1f\x7f-\x9f]")


class AuthService(BaseService):
    """Centralised authentication service.

    Parameters
    ----------
    backend:
        Supabase client holder.
    store:
        The session/profile store this service keeps up to date.
    user_repo:
        Repository used to insert and fetch profile rows.
    config:
        Application configuration (password policy).
    logger:
        Structured JSON logger.
    """

    def __init__(
        self,
        backend: BackendClient,
        store: SessionStore,
        user_repo: UserRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._backend: BackendClient = backend
        self._store: SessionStore = store
        self._user_repo: UserRepository = user_repo
        self._config: AppConfig = config
        self._subscription: Optional[Any] = None

    # ==================================================================
    # Validation helpers
    # ==================================================================

    @staticmethod
    def normalize_email(email: str) -> str:
        """Normalise an email address: strip whitespace and lowercase."""
        return email.strip().lower()

    @staticmethod
    def validate_email(email: str) -> ValidationResult:
        """Validate an email address against a simplified RFC 5322 regex."""
        if not email or not email.strip():
            return ValidationResult(
                is_valid=False,
                error_message="Email address is required.",
            )
        if not _EMAIL_RE.match(email.strip()):
            return ValidationResult(
                is_valid=False,
                error_message="Please enter a valid email address.",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_password(password: str, min_length: int = 6) -> ValidationResult:
        """Enforce the password policy: at least *min_length* characters."""
        if len(password) < min_length:
            return ValidationResult(
                is_valid=False,
                error_message=f"Password must be at least {min_length} characters long.",
            )
        return ValidationResult(is_valid=True)

    @staticmethod
    def validate_name(name: str, field_label: str = "Full name") -> ValidationResult:
        """Validate a display name.

        Rejects blank names and control characters (including newlines
        and tabs) to prevent log injection and display corruption.
        """
        stripped = (name or "").strip()
        if not stripped:
            return ValidationResult(
                is_valid=False,
                error_message=f"{field_label} is required.",
            )
        if _CONTROL_CHAR_RE.search(stripped):
            return ValidationResult(
                is_valid=False,
                error_message=(
                    f"{field_label} contains invalid characters. "
                    "Only printable characters are allowed."
                ),
            )
        return ValidationResult(is_valid=True)

    def validate_registration(
        self,
        email: str,
        password: str,
        full_name: str,
        role_id: str,
        confirm_password: Optional[str] = None,
    ) -> ValidationResult:
        """Run every registration-form check, first failure wins.

        Order: required fields, password length, confirmation match,
        email format, name characters.  ``confirm_password=None`` skips
        the confirmation checks.
        """
        required = [email, password, full_name, role_id]
        if confirm_password is not None:
            required.append(confirm_password)
        if any(not (value or "").strip() for value in required):
            return ValidationResult(is_valid=False, error_message="All fields are required.")

        check = self.validate_password(password, self._config.MIN_PASSWORD_LENGTH)
        if not check.is_valid:
            return check

        if confirm_password is not None and password != confirm_password:
            return ValidationResult(is_valid=False, error_message="Passwords do not match.")

        for check in (self.validate_email(email), self.validate_name(full_name)):
            if not check.is_valid:
                return check

        return ValidationResult(is_valid=True)

    # ==================================================================
    # Lifecycle
    # ==================================================================

    def start(self) -> None:
        """Subscribe to auth changes, then load any existing session.

        Idempotent: calling ``start()`` twice does not double-subscribe.
        """
        if self._subscription is not None:
            self._logger.debug("Auth subscription already active.")
            return

        if not self._backend.is_configured:
            self._logger.error("Cannot start authentication: backend not configured.")
            self._sync_session(None)
            return

        auth = self._backend.supabase.auth
        self._subscription = auth.on_auth_state_change(self._on_auth_state_change)

        try:
            session = auth.get_session()
        except Exception as exc:
            self._logger.warning("Initial session query failed: %s", exc)
            session = None
        self._sync_session(session)

    def stop(self) -> None:
        """Cancel the auth-change subscription.  Safe to call twice."""
        if self._subscription is None:
            return
        try:
            self._subscription.unsubscribe()
        except Exception as exc:
            self._logger.warning("Auth subscription unsubscribe failed: %s", exc)
        self._subscription = None

    # ==================================================================
    # Sign-up
    # ==================================================================

    def sign_up(
        self,
        email: str,
        password: str,
        full_name: str,
        role_id: str,
        *,
        confirm_password: Optional[str] = None,
    ) -> AuthResult:
        """Create an auth identity, then its ``users`` row.

        Validates all fields before any network call.  If the row insert
        fails, the identity is deleted again through the admin API and
        the local session ended; ``PARTIAL_SIGNUP`` reports that the
        deletion itself failed and an orphaned identity remains.
        """
        check = self.validate_registration(
            email, password, full_name, role_id, confirm_password,
        )
        if not check.is_valid:
            return AuthResult(
                success=False,
                error_code=ErrorCode.VALIDATION_ERROR,
                error_message=check.error_message,
            )

        email = self.normalize_email(email)
        full_name = full_name.strip()

        # --- Step 1: auth identity ---
        try:
            response = self._backend.supabase.auth.sign_up({
                "email": email,
                "password": password,
            })
        except RuntimeError:
            return self._backend_unavailable()
        except Exception as exc:
            return self._classify_auth_error(exc, "REGISTER_FAILED")

        user = response.user
        if user is None:
            self._logger.error("Sign-up for %s returned no user.", email)
            return AuthResult(
                success=False,
                error_code=ErrorCode.UNKNOWN_ERROR,
                error_message="Registration could not be completed. Please try again later.",
            )
        # With email confirmation on, GoTrue answers a duplicate sign-up
        # with an obfuscated user that has no identities.
        if getattr(user, "identities", None) == []:
            code, message = SUPABASE_ERROR_MAP["user_already_exists"]
            return AuthResult(success=False, error_code=code, error_message=message)

        # --- Step 2: profile row ---
        try:
            self._user_repo.insert(user.id, email, full_name, role_id)
        except (ProfileError, RuntimeError) as exc:
            return self._compensate_sign_up(user.id, email, exc)

        self._sync_if_unsubscribed(response.session)
        self.refresh_profile()

        self._logger.info(
            "User registered: %s (%s).",
            full_name,
            email,
            extra={"event": "REGISTER", "email": email, "user_id": user.id},
        )
        return AuthResult(success=True, user_id=user.id, email=email)

    def _compensate_sign_up(
        self,
        user_id: str,
        email: str,
        cause: Exception,
    ) -> AuthResult:
        """Undo identity creation after a failed profile insert."""
        self._logger.error(
            "Profile insert failed for %s: %s. Deleting the new identity.",
            email,
            cause,
            extra={"event": "REGISTER_ROLLBACK", "email": email, "user_id": user_id},
        )
        try:
            self._backend.admin_auth.delete_user(user_id)
        except Exception as exc:
            self._logger.error(
                "Could not delete orphaned identity %s (%s): %s",
                user_id,
                email,
                exc,
                extra={"event": "PARTIAL_SIGNUP", "email": email, "user_id": user_id},
            )
            self.sign_out()
            return AuthResult(
                success=False,
                error_code=ErrorCode.PARTIAL_SIGNUP,
                error_message=(
                    "Your account was created but its profile could not be saved. "
                    "Contact an administrator."
                ),
                user_id=user_id,
                email=email,
            )

        self.sign_out()
        return AuthResult(
            success=False,
            error_code=ErrorCode.PROFILE_INSERT_FAILED,
            error_message="Registration could not be completed. Please try again.",
            email=email,
        )

    # ==================================================================
    # Sign-in / sign-out
    # ==================================================================

    def sign_in(self, email: str, password: str) -> AuthResult:
        """Authenticate with email and password.

        The store is updated by the auth-change notification the client
        emits on success.
        """
        email = self.normalize_email(email)
        if not email or not password:
            return AuthResult(
                success=False,
                error_code=ErrorCode.VALIDATION_ERROR,
                error_message="Email and password are required.",
            )

        try:
            response = self._backend.supabase.auth.sign_in_with_password({
                "email": email,
                "password": password,
            })
        except RuntimeError:
            return self._backend_unavailable()
        except Exception as exc:
            return self._classify_auth_error(exc, "LOGIN_FAILED")

        self._sync_if_unsubscribed(response.session)

        user_id: Optional[str] = response.user.id if response.user else None
        self._logger.info(
            "User authenticated: %s",
            email,
            extra={"event": "LOGIN", "email": email, "user_id": user_id},
        )
        return AuthResult(success=True, user_id=user_id, email=email)

    def sign_out(self) -> None:
        """Revoke the backend session and clear local state.

        Never fails from the caller's perspective: server errors are
        logged and the store is cleared regardless.
        """
        profile = self._store.profile
        user_email = profile.email if profile else "unknown"

        try:
            self._backend.supabase.auth.sign_out()
        except RuntimeError:
            self._logger.debug("Backend not configured; skipping server sign-out.")
        except Exception as exc:
            self._logger.warning("Server-side sign_out failed for %s: %s", user_email, exc)

        if self._store.session is not None:
            self._sync_session(None)

        self._logger.info(
            "User signed out: %s",
            user_email,
            extra={"event": "LOGOUT", "email": user_email},
        )

    # ==================================================================
    # Profile refresh
    # ==================================================================

    def refresh_profile(self) -> None:
        """Re-fetch the current subject's profile.  No-op when signed out.

        Views call this after writing to their own ``users`` row, since
        the store does not observe those writes.
        """
        ticket = self._store.begin_refresh()
        if ticket is None:
            return
        stamp, user_id = ticket
        self._store.complete_fetch(stamp, self._fetch_profile(user_id))

    # ==================================================================
    # Private helpers
    # ==================================================================

    def _on_auth_state_change(self, event: Any, session: Any) -> None:
        """Callback registered with ``auth.on_auth_state_change``."""
        self._logger.info("Auth state change: %s", event, extra={"event": str(event)})
        self._sync_session(session)

    def _sync_session(self, session: Any) -> None:
        """Set the session reference and, if present, fetch its profile."""
        info: Optional[SessionInfo] = None
        if session is not None and getattr(session, "user", None) is not None:
            info = SessionInfo.from_supabase(session)

        stamp = self._store.begin_session(info)
        if info is not None:
            self._store.complete_fetch(stamp, self._fetch_profile(info.user_id))

    def _sync_if_unsubscribed(self, session: Any) -> None:
        """Feed *session* to the store when no subscription will do it."""
        if self._subscription is None and session is not None:
            self._sync_session(session)

    def _fetch_profile(self, user_id: str) -> Optional[UserProfile]:
        """Fetch the joined profile, degrading every failure to ``None``."""
        try:
            return self._user_repo.get_profile(user_id)
        except NotFoundError:
            self._logger.warning("No profile row for signed-in user %s.", user_id)
        except ProfileError as exc:
            self._logger.error("Error fetching user profile for %s: %s", user_id, exc)
        except RuntimeError as exc:
            self._logger.error("Backend unavailable while fetching profile: %s", exc)
        return None

    def _backend_unavailable(self) -> AuthResult:
        return AuthResult(
            success=False,
            error_code=ErrorCode.BACKEND_UNAVAILABLE,
            error_message="The backend is not configured. Contact your administrator.",
        )

    def _classify_auth_error(self, exc: Exception, event: str) -> AuthResult:
        """Map a Supabase or network exception to a structured ``AuthResult``.

        ``error_code`` comes from ``SUPABASE_ERROR_MAP``; ``error_message``
        is the backend's own text, with the mapped message used only when
        the backend sent none.
        """
        if isinstance(exc, (AuthRetryableError, ConnectionError, TimeoutError)):
            self._logger.warning(
                "Network error during auth: %s", exc,
                extra={"event": f"{event}_NETWORK"},
            )
            return AuthResult(
                success=False,
                error_code=ErrorCode.NETWORK_ERROR,
                error_message="Cannot reach the server. Check your internet connection.",
            )

        backend_message = str(exc).strip()

        code = getattr(exc, "code", None)
        if isinstance(code, str) and code in SUPABASE_ERROR_MAP:
            error_code, fallback_message = SUPABASE_ERROR_MAP[code]
            self._logger.warning(
                "Auth error (%s): %s", code, exc,
                extra={"event": event, "error_code": code},
            )
            return AuthResult(
                success=False,
                error_code=error_code,
                error_message=backend_message or fallback_message,
            )

        error_str = backend_message.lower()
        for code_key, (error_code, fallback_message) in SUPABASE_ERROR_MAP.items():
            if code_key in error_str:
                self._logger.warning(
                    "Auth error (%s): %s", code_key, exc,
                    extra={"event": event, "error_code": code_key},
                )
                return AuthResult(
                    success=False,
                    error_code=error_code,
                    error_message=backend_message or fallback_message,
                )

        self._logger.warning(
            "Unknown auth error: %s", exc,
            extra={"event": event, "error_code": "unknown"},
        )
        return AuthResult(
            success=False,
            error_code=ErrorCode.UNKNOWN_ERROR,
            error_message=backend_message or "An unexpected error occurred. Please try again later.",
        )
