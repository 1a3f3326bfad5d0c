"""
User Management Service.

Handles administrative user operations: listing, searching, editing
name and role, and deleting identities.

Architectural notes:
    - Row reads/writes go through UserRepository.
    - Identity deletion uses the service-role client's admin API; the
      ``users`` row goes with it through the foreign-key cascade.
    - Every operation re-checks that the signed-in profile is an admin.
"""

from __future__ import annotations

from typing import Optional

from userconsole.auth import SessionStore
from userconsole.backend import BackendClient
from userconsole.exceptions import NotFoundError, ProfileError
from userconsole.logger import StructuredLogger
from userconsole.models.enums import ErrorCode
from userconsole.models.service_models import ServiceResult
from userconsole.models.user import User, UserProfile
from userconsole.repositories.user_repository import UserRepository
from userconsole.services.auth_service import AuthService
from userconsole.services.base_service import BaseService
from userconsole.utils.string_helpers import matches_term


class UserAdminService(BaseService):
    """Service layer for the admin users table."""

    def __init__(
        self,
        backend: BackendClient,
        store: SessionStore,
        auth_service: AuthService,
        user_repo: UserRepository,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._backend = backend
        self._store = store
        self._auth = auth_service
        self._repo = user_repo

    def list_users(self) -> ServiceResult[list[UserProfile]]:
        """Fetch every user with its role name, newest first."""
        denied = self._require_admin("list users")
        if denied is not None:
            return denied

        try:
            users = self._repo.list_profiles()
        except (ProfileError, RuntimeError) as exc:
            self._logger.error("Failed to fetch users: %s", exc)
            return ServiceResult(
                success=False,
                error=f"Error fetching users: {exc}",
                error_code=ErrorCode.PROFILE_ERROR,
            )
        return ServiceResult(success=True, data=users)

    @staticmethod
    def filter_users(users: list[UserProfile], term: str) -> list[UserProfile]:
        """Keep users whose full name or email contains *term*, ignoring case."""
        return [user for user in users if matches_term(term, user.full_name, user.email)]

    def search_users(self, term: str) -> ServiceResult[list[UserProfile]]:
        result = self.list_users()
        if not result.success or result.data is None:
            return result
        return ServiceResult(success=True, data=self.filter_users(result.data, term))

    def update_user(
        self,
        user_id: str,
        full_name: str,
        role_id: str,
    ) -> ServiceResult[User]:
        """
        Save the edit modal: a user's full name and role.

        Args:
            user_id: UUID of the target user.
            full_name: New display name.
            role_id: UUID of the new role.
        """
        # --- 0. RBAC ---
        denied = self._require_admin("update users")
        if denied is not None:
            return denied

        # --- 1. Validate ---
        check = AuthService.validate_name(full_name)
        if not check.is_valid:
            return ServiceResult(
                success=False,
                error=check.error_message,
                error_code=ErrorCode.VALIDATION_ERROR,
            )
        if not role_id or not role_id.strip():
            return ServiceResult(
                success=False,
                error="A role must be selected.",
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        # --- 2. Write ---
        try:
            updated = self._repo.update_name_and_role(user_id, full_name.strip(), role_id)
        except NotFoundError:
            return ServiceResult(
                success=False,
                error="User not found.",
                error_code=ErrorCode.NOT_FOUND,
            )
        except (ProfileError, RuntimeError) as exc:
            self._logger.error("update_name_and_role failed for %s: %s", user_id, exc)
            return ServiceResult(
                success=False,
                error=f"Could not update user: {exc}",
                error_code=ErrorCode.PROFILE_ERROR,
            )

        # --- 3. Own row edited: keep the store current ---
        if self._current_user_id() == user_id:
            self._auth.refresh_profile()

        self._logger.info(
            "User %s updated by %s.",
            user_id,
            self._current_user_id(),
            extra={"event": "UPDATE_USER", "user_id": user_id},
        )
        return ServiceResult(success=True, data=updated)

    def delete_user(self, user_id: str) -> ServiceResult[None]:
        """Delete the auth identity for *user_id*.

        The ``users`` row is removed by the backend's cascade, so a
        subsequent ``list_users()`` no longer contains it.
        """
        denied = self._require_admin("delete users")
        if denied is not None:
            return denied

        if not self._backend.has_admin:
            self._logger.error("Cannot delete user %s: admin API not configured.", user_id)
            return ServiceResult(
                success=False,
                error="User deletion is not available. Set SUPABASE_SERVICE_ROLE_KEY.",
                error_code=ErrorCode.BACKEND_UNAVAILABLE,
            )

        try:
            self._backend.admin_auth.delete_user(user_id)
        except Exception as exc:
            self._logger.error("Admin delete_user failed for %s: %s", user_id, exc)
            return ServiceResult(
                success=False,
                error=f"Could not delete user: {exc}",
                error_code=ErrorCode.UNKNOWN_ERROR,
            )

        self._logger.info(
            "User %s deleted by %s.",
            user_id,
            self._current_user_id(),
            extra={"event": "DELETE_USER", "user_id": user_id},
        )
        return ServiceResult(success=True)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _current_user_id(self) -> Optional[str]:
        profile = self._store.profile
        return profile.id if profile else None

    def _require_admin(self, action: str) -> Optional[ServiceResult]:
        if self._store.is_admin:
            return None
        self._logger.warning(
            "Non-admin %s attempted to %s.",
            self._current_user_id() or "anonymous",
            action,
        )
        return ServiceResult(
            success=False,
            error=f"Only admin users can {action}.",
            error_code=ErrorCode.PERMISSION_DENIED,
        )
