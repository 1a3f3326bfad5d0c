"""
Profile Service.

Self-service edits to the signed-in user's own ``users`` row: the
display name and the avatar image.  Every successful write is followed
by ``AuthService.refresh_profile()`` so the ``SessionStore`` reflects it.
"""

from __future__ import annotations

from userconsole.auth import SessionStore
from userconsole.config import AppConfig
from userconsole.exceptions import NotFoundError, ProfileError, StorageError
from userconsole.logger import StructuredLogger
from userconsole.models.auth_models import ValidationResult
from userconsole.models.enums import ErrorCode
from userconsole.models.service_models import AvatarUpload, ServiceResult
from userconsole.models.user import UserProfile
from userconsole.repositories.avatar_repository import AvatarRepository
from userconsole.repositories.user_repository import UserRepository
from userconsole.services.auth_service import AuthService
from userconsole.services.base_service import BaseService


class ProfileService(BaseService):
    """Service layer for the profile page."""

    def __init__(
        self,
        store: SessionStore,
        auth_service: AuthService,
        user_repo: UserRepository,
        avatar_repo: AvatarRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._store = store
        self._auth = auth_service
        self._user_repo = user_repo
        self._avatar_repo = avatar_repo
        self._config = config

    def update_full_name(self, full_name: str) -> ServiceResult[UserProfile]:
        """Rename the current user and return the refreshed profile."""
        profile = self._store.profile
        if profile is None:
            return self._no_profile()

        check = AuthService.validate_name(full_name)
        if not check.is_valid:
            return ServiceResult(
                success=False,
                error=check.error_message,
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        try:
            self._user_repo.update_full_name(profile.id, full_name.strip())
        except (NotFoundError, ProfileError, RuntimeError) as exc:
            return self._write_failed(exc, "Could not update your name")

        self._auth.refresh_profile()
        return ServiceResult(success=True, data=self._store.profile)

    def validate_avatar(self, upload: AvatarUpload) -> ValidationResult:
        """Check size and MIME type.  Runs before any network call."""
        if upload.size > self._config.AVATAR_MAX_BYTES:
            limit_mb = self._config.AVATAR_MAX_BYTES // (1024 * 1024)
            return ValidationResult(
                is_valid=False,
                error_message=f"Image must be smaller than {limit_mb}MB.",
            )
        if upload.content_type not in self._config.AVATAR_ALLOWED_TYPES:
            return ValidationResult(
                is_valid=False,
                error_message="Only JPEG, PNG, GIF or WEBP images are allowed.",
            )
        return ValidationResult(is_valid=True)

    def upload_avatar(self, upload: AvatarUpload) -> ServiceResult[UserProfile]:
        """Store a new avatar image and point the profile at it.

        Each upload gets a fresh object name, so earlier images remain in
        the bucket and cached URLs never serve the new picture.
        """
        profile = self._store.profile
        if profile is None:
            return self._no_profile()

        check = self.validate_avatar(upload)
        if not check.is_valid:
            return ServiceResult(
                success=False,
                error=check.error_message,
                error_code=ErrorCode.VALIDATION_ERROR,
            )

        path = AvatarRepository.object_path(profile.id, upload.extension)
        try:
            url = self._avatar_repo.upload(path, upload.data, upload.content_type)
        except StorageError as exc:
            self._logger.error("Avatar upload failed for %s: %s", profile.id, exc)
            return ServiceResult(
                success=False,
                error=f"Could not upload image: {exc.message}",
                error_code=ErrorCode.STORAGE_ERROR,
            )
        except RuntimeError as exc:
            return self._write_failed(exc, "Could not upload image")

        try:
            self._user_repo.update_profile_picture(profile.id, url)
        except (NotFoundError, ProfileError, RuntimeError) as exc:
            return self._write_failed(exc, "Could not save your new picture")

        self._auth.refresh_profile()
        return ServiceResult(success=True, data=self._store.profile)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _no_profile() -> ServiceResult[UserProfile]:
        return ServiceResult(
            success=False,
            error="No profile is loaded. Sign in first.",
            error_code=ErrorCode.NOT_FOUND,
        )

    def _write_failed(self, exc: Exception, prefix: str) -> ServiceResult[UserProfile]:
        self._logger.error("%s: %s", prefix, exc)
        if isinstance(exc, NotFoundError):
            code = ErrorCode.NOT_FOUND
        elif isinstance(exc, RuntimeError):
            code = ErrorCode.BACKEND_UNAVAILABLE
        else:
            code = ErrorCode.PROFILE_ERROR
        return ServiceResult(success=False, error=f"{prefix}: {exc}", error_code=code)
