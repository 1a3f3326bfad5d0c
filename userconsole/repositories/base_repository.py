"""
Base Repository.

Provides shared infrastructure for all repositories:
- BackendClient reference (Supabase)
- Logger reference
- A single place that turns client-library exceptions into the
  console's exception taxonomy
"""

from __future__ import annotations

from typing import Callable, TypeVar

from supabase import Client as SupabaseClient

from userconsole.backend import BackendClient
from userconsole.exceptions import ConsoleError
from userconsole.logger import StructuredLogger

T = TypeVar("T")


class BaseRepository:
    """Base class for all repositories. Receives dependencies via __init__."""

    TABLE: str = ""

    def __init__(self, backend: BackendClient, logger: StructuredLogger) -> None:
        self._backend = backend
        self._logger = logger

    @property
    def supabase(self) -> SupabaseClient:
        """Returns the Supabase client. Raises ``RuntimeError`` when unconfigured."""
        return self._backend.supabase

    def _execute(
        self,
        op: Callable[[], T],
        *,
        operation_name: str,
        error_cls: type[ConsoleError],
    ) -> T:
        """Run *op*, re-raising client failures as *error_cls*.

        ``ConsoleError`` subclasses raised inside *op* (e.g. a
        ``NotFoundError`` for an empty result) and the ``RuntimeError``
        of an unconfigured backend pass through untouched.

        Parameters
        ----------
        op:
            Zero-argument callable performing the Supabase call.
        operation_name:
            Human-readable label for log messages, e.g.
            ``"get_profile (users)"``.
        error_cls:
            Exception type raised for any other failure.
        """
        try:
            return op()
        except (ConsoleError, RuntimeError):
            raise
        except Exception as exc:
            self._logger.error("Supabase call failed for %s: %s", operation_name, exc)
            raise error_cls(f"{operation_name} failed: {exc}", original_error=exc) from exc
