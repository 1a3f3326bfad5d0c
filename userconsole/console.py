"""
Console Context.

``Console`` is the explicit context object handed to every view: it
carries the configuration, the backend client, the shared
``SessionStore``, the wired services and the view registry.  Nothing in
the package keeps module-level session state.

Usage::

    from userconsole.console import build_console

    console = build_console()
    console.start()
    result = console.services["auth_service"].sign_in("a@example.com", "secret1")
    for view in console.available_views():
        print(view.view_id)
"""

from __future__ import annotations

from typing import Any, Optional

from supabase import create_client

from userconsole.auth import SessionStore
from userconsole.backend import BackendClient, ClientFactory
from userconsole.config import AppConfig, get_config
from userconsole.logger import StructuredLogger, get_logger
from userconsole.models.enums import RoleName
from userconsole.services import ServiceContainer, create_services
from userconsole.views import ViewEntry, ViewRegistry


class Console:
    """Explicit application context shared by all views.

    Parameters
    ----------
    config:
        Application configuration.
    backend:
        Supabase client holder.
    store:
        The session/profile store.
    services:
        Wired services from ``create_services``.
    registry:
        Registered views.
    logger:
        Structured logger.
    """

    def __init__(
        self,
        config: AppConfig,
        backend: BackendClient,
        store: SessionStore,
        services: ServiceContainer,
        registry: ViewRegistry,
        logger: StructuredLogger,
    ) -> None:
        self.config = config
        self.backend = backend
        self.store = store
        self.services = services
        self.registry = registry
        self._logger = logger

    def start(self) -> None:
        """Discover any existing session and subscribe to auth changes."""
        self.services["auth_service"].start()

    def stop(self) -> None:
        self.services["auth_service"].stop()

    def available_views(self) -> list[ViewEntry]:
        """Views the current profile may open; empty when signed out."""
        return self.registry.get_views_for_profile(self.store.profile)

    def open_view(self, view_id: str) -> Any:
        """Build and return the view registered as *view_id*.

        Raises
        ------
        KeyError
            If *view_id* is not registered.
        PermissionError
            If the current profile may not open it.
        """
        entry = self.registry.get_view(view_id)
        profile = self.store.profile
        if not self.registry.can_access(view_id, profile):
            self._logger.warning(
                "Access to view '%s' denied for %s.",
                view_id,
                profile.email if profile else "signed-out user",
            )
            raise PermissionError(f"You do not have access to '{entry.display_name}'.")
        return entry.factory()


def build_console(
    config: Optional[AppConfig] = None,
    client_factory: ClientFactory = create_client,
) -> Console:
    """
    Wire config, backend, store, services and views into a ``Console``.

    Args:
        config: Configuration; defaults to ``get_config()``.
        client_factory: ``(url, key) -> Client``; injectable for tests.
    """
    config = config or get_config()
    logger = get_logger("userconsole")

    backend = BackendClient(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        service_role_key=config.SUPABASE_SERVICE_ROLE_KEY.get_secret_value(),
        logger=logger,
        client_factory=client_factory,
    )
    store = SessionStore(logger=logger)
    services = create_services(backend=backend, config=config, store=store, logger=logger)

    registry = ViewRegistry(logger=logger)
    registry.register(
        "profile",
        "Profile",
        lambda: services["profile_service"],
        default=True,
    )
    registry.register(
        "users",
        "Users",
        lambda: services["user_admin_service"],
        required_roles=frozenset({RoleName.ADMIN.value}),
    )

    return Console(
        config=config,
        backend=backend,
        store=store,
        services=services,
        registry=registry,
        logger=logger,
    )
