"""Role lookups for the registration form and the admin edit modal."""

from __future__ import annotations

from typing import Optional

from userconsole.config import AppConfig
from userconsole.exceptions import ProfileError
from userconsole.logger import StructuredLogger
from userconsole.models.enums import ErrorCode
from userconsole.models.service_models import ServiceResult
from userconsole.models.user import Role
from userconsole.repositories.role_repository import RoleRepository
from userconsole.services.base_service import BaseService


class RoleService(BaseService):
    def __init__(
        self,
        repo: RoleRepository,
        config: AppConfig,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._repo = repo
        self._config = config

    def list_roles(self) -> ServiceResult[list[Role]]:
        """Every role, ordered by name.  Readable while signed out."""
        try:
            roles = self._repo.get_all()
        except (ProfileError, RuntimeError) as exc:
            self._logger.error("Failed to fetch roles: %s", exc)
            return ServiceResult(
                success=False,
                error=f"Error fetching roles: {exc}",
                error_code=ErrorCode.PROFILE_ERROR,
            )
        return ServiceResult(success=True, data=roles)

    def default_role(self, roles: Optional[list[Role]] = None) -> Optional[Role]:
        """The role pre-selected on the registration form.

        Looks in *roles* when given, otherwise queries the table.
        """
        name = self._config.DEFAULT_ROLE_NAME
        if roles is not None:
            return next((role for role in roles if role.name == name), None)
        try:
            return self._repo.get_by_name(name)
        except (ProfileError, RuntimeError) as exc:
            self._logger.warning("Default role %r lookup failed: %s", name, exc)
            return None
