"""
Business Logic Services Package.

Services depend on the Repository layer for data access and on the
``SessionStore`` for "who is signed in".

The ``create_services()`` factory wires every repository and service together,
returning a typed dict that the console and its views can consume without
knowing the internal dependency graph.
"""

from __future__ import annotations

from typing import Optional, TypedDict

from userconsole.auth import SessionStore
from userconsole.backend import BackendClient
from userconsole.config import AppConfig
from userconsole.logger import StructuredLogger, get_logger
from userconsole.repositories.avatar_repository import AvatarRepository
from userconsole.repositories.role_repository import RoleRepository
from userconsole.repositories.user_repository import UserRepository
from userconsole.services.auth_service import AuthService
from userconsole.services.profile_service import ProfileService
from userconsole.services.roles import RoleService
from userconsole.services.users import UserAdminService


class ServiceContainer(TypedDict):
    """Typed container for all console services."""

    auth_service: AuthService
    profile_service: ProfileService
    user_admin_service: UserAdminService
    role_service: RoleService


def create_services(
    backend: BackendClient,
    config: AppConfig,
    store: SessionStore,
    logger: Optional[StructuredLogger] = None,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.

    Args:
        backend: Supabase client holder.
        config: Application configuration (injected into services that need it).
        store: The session/profile store shared by every view.
        logger: Optional logger; defaults to ``get_logger("services")``.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = logger or get_logger("services")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    user_repo = UserRepository(
        backend=backend,
        logger=logger,
        missing_role_fallback=config.missing_role_fallback,
    )
    role_repo = RoleRepository(backend=backend, logger=logger)
    avatar_repo = AvatarRepository(
        backend=backend,
        logger=logger,
        bucket=config.PROFILE_PICTURES_BUCKET,
        cache_control=config.AVATAR_CACHE_CONTROL,
    )

    # ------------------------------------------------------------------
    # 2. Services
    # ------------------------------------------------------------------
    auth_service = AuthService(
        backend=backend,
        store=store,
        user_repo=user_repo,
        config=config,
        logger=logger,
    )
    profile_service = ProfileService(
        store=store,
        auth_service=auth_service,
        user_repo=user_repo,
        avatar_repo=avatar_repo,
        config=config,
        logger=logger,
    )
    user_admin_service = UserAdminService(
        backend=backend,
        store=store,
        auth_service=auth_service,
        user_repo=user_repo,
        logger=logger,
    )
    role_service = RoleService(repo=role_repo, config=config, logger=logger)

    return ServiceContainer(
        auth_service=auth_service,
        profile_service=profile_service,
        user_admin_service=user_admin_service,
        role_service=role_service,
    )
