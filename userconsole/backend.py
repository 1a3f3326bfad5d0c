"""
Backend Client Layer.

Owns the Supabase clients the console delegates every persistence,
authentication and storage concern to:

- **Anon client**: sessions (sign-up, sign-in, sign-out, change
  notifications), row access on ``users`` / ``roles`` and object storage.
  Row-level security on the project decides what each session may touch.

- **Service-role client** (optional): used only for
  ``auth.admin.delete_user`` for admin user deletion and the sign-up
  compensation step.  When the service-role key is not configured the
  ``admin_auth`` property raises ``RuntimeError`` and callers report the
  operation as unavailable.

This module only manages client *construction*; it contains no query
logic.  Data access is performed through the Repository pattern.

Usage (dependency injection at startup)::

    from userconsole.backend import BackendClient
    from userconsole.logger import StructuredLogger

    backend = BackendClient(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        service_role_key=config.SUPABASE_SERVICE_ROLE_KEY.get_secret_value(),
        logger=StructuredLogger(name="backend"),
    )
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from supabase import create_client, Client as SupabaseClient

from userconsole.logger import StructuredLogger

ClientFactory = Callable[[str, str], SupabaseClient]


class BackendClient:
    """Holds the Supabase clients for the lifetime of the console.

    Fully configured at construction time via dependency injection.

    Parameters
    ----------
    supabase_url:
        The Supabase project URL (e.g. ``https://xyz.supabase.co``).
    supabase_key:
        The Supabase anonymous key.
    service_role_key:
        The Supabase service-role key.  May be empty, which disables
        admin identity operations.
    logger:
        A ``StructuredLogger`` instance for structured JSON log output.
    client_factory:
        Callable ``(url, key) -> Client``.  Defaults to
        ``supabase.create_client``.
    """

    def __init__(
        self,
        supabase_url: str,
        supabase_key: str,
        logger: StructuredLogger,
        service_role_key: str = "",
        client_factory: ClientFactory = create_client,
    ) -> None:
        self._logger: StructuredLogger = logger
        self._client: Optional[SupabaseClient] = self._create(
            client_factory, supabase_url, supabase_key, "anon",
        )
        self._admin_client: Optional[SupabaseClient] = None
        if service_role_key:
            self._admin_client = self._create(
                client_factory, supabase_url, service_role_key, "service-role",
            )

    # ------------------------------------------------------------------
    # Public properties
    # ------------------------------------------------------------------

    @property
    def supabase(self) -> SupabaseClient:
        """Return the anon-key Supabase client.

        Raises
        ------
        RuntimeError
            If the client could not be created (missing or malformed
            credentials).
        """
        if self._client is None:
            raise RuntimeError(
                "Supabase client is not initialised. "
                "Check SUPABASE_URL and SUPABASE_ANON_KEY."
            )
        return self._client

    @property
    def admin_auth(self) -> Any:
        """Return the GoTrue admin API of the service-role client.

        Raises
        ------
        RuntimeError
            If no service-role key was configured.
        """
        if self._admin_client is None:
            raise RuntimeError(
                "Supabase admin API is not available. "
                "Set SUPABASE_SERVICE_ROLE_KEY to enable user deletion."
            )
        return self._admin_client.auth.admin

    @property
    def is_configured(self) -> bool:
        """``True`` when the anon client is available."""
        return self._client is not None

    @property
    def has_admin(self) -> bool:
        """``True`` when the service-role client is available."""
        return self._admin_client is not None

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _create(
        self,
        factory: ClientFactory,
        url: str,
        key: str,
        label: str,
    ) -> Optional[SupabaseClient]:
        """Build one Supabase client, logging instead of raising on failure."""
        if not url or not key:
            self._logger.warning(
                "Supabase %s credentials not configured; client disabled.",
                label,
            )
            return None
        try:
            client = factory(url, key)
        except (ValueError, TypeError) as exc:
            self._logger.warning(
                "Supabase %s credential format error: %s. Client disabled.",
                label,
                exc,
            )
            return None
        except Exception as exc:
            self._logger.exception(
                "Unexpected Supabase %s initialisation failure: %s.",
                label,
                exc,
            )
            return None
        self._logger.info("Supabase %s client initialised.", label)
        return client
