"""View Registry.

Central registry for the console's views.  The ``Console`` queries this
registry to decide which views the signed-in profile may reach and to
open them.

Adding a new view = one ``register()`` call + one factory.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from userconsole.logger import StructuredLogger
from userconsole.models.user import UserProfile

ViewFactory = Callable[[], Any]


class ViewEntry:
    """Metadata for a single registered view.

    Attributes
    ----------
    view_id:
        Unique string identifier (e.g. ``'users'``).
    display_name:
        Human-readable name shown in navigation.
    factory:
        Zero-argument callable returning the view's backing object.
        Called on every ``open_view``.
    required_roles:
        Role names that may open this view.  ``None`` admits any signed-in
        user whose profile is loaded.
    """

    __slots__ = (
        "view_id",
        "display_name",
        "factory",
        "required_roles",
    )

    def __init__(
        self,
        view_id: str,
        display_name: str,
        factory: ViewFactory,
        required_roles: Optional[frozenset[str]],
    ) -> None:
        self.view_id = view_id
        self.display_name = display_name
        self.factory = factory
        self.required_roles = required_roles

    def admits(self, profile: Optional[UserProfile]) -> bool:
        """``True`` when *profile* may open this view."""
        if profile is None:
            return False
        if self.required_roles is None:
            return True
        return profile.role_name in self.required_roles


class ViewRegistry:
    """Manages the collection of registered views.

    Parameters
    ----------
    logger:
        Structured logger for registration events.
    """

    def __init__(self, logger: StructuredLogger) -> None:
        self._entries: dict[str, ViewEntry] = {}
        self._logger = logger
        self._default_view_id: str = ""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def register(
        self,
        view_id: str,
        display_name: str,
        factory: ViewFactory,
        required_roles: Optional[frozenset[str]] = None,
        *,
        default: bool = False,
    ) -> None:
        """Register a view.

        Parameters
        ----------
        view_id:
            Unique identifier for the view.
        display_name:
            Label shown in navigation.
        factory:
            Callable ``() -> view`` invoked when the view is opened.
        required_roles:
            Role names permitted to open the view; ``None`` for any
            signed-in profile.
        default:
            If ``True``, this view is opened after sign-in.
        """
        if view_id in self._entries:
            self._logger.warning("View '%s' already registered; overwriting.", view_id)
        self._entries[view_id] = ViewEntry(
            view_id=view_id,
            display_name=display_name,
            factory=factory,
            required_roles=required_roles,
        )
        if default or not self._default_view_id:
            self._default_view_id = view_id
        self._logger.info("View registered: %s (%s)", view_id, display_name)

    def get_views_for_profile(self, profile: Optional[UserProfile]) -> list[ViewEntry]:
        """Return views *profile* may open, preserving registration order.

        Empty when signed out or while the profile is unavailable.
        """
        return [entry for entry in self._entries.values() if entry.admits(profile)]

    def can_access(self, view_id: str, profile: Optional[UserProfile]) -> bool:
        entry = self._entries.get(view_id)
        return entry is not None and entry.admits(profile)

    def get_view(self, view_id: str) -> ViewEntry:
        """Return a specific view entry by ID.

        Raises
        ------
        KeyError
            If *view_id* is not registered.
        """
        if view_id not in self._entries:
            raise KeyError(f"View '{view_id}' is not registered.")
        return self._entries[view_id]

    @property
    def default_view_id(self) -> str:
        """The ``view_id`` to open after sign-in."""
        return self._default_view_id
