"""
Session & Profile State.

Provides an injectable ``SessionStore`` that holds the current Supabase
session reference and the joined ``UserProfile`` for the lifetime of
the console, and publishes every change to subscribed observers.

The store never talks to the backend itself.  ``AuthService`` drives it
through two calls per fetch::

    stamp = store.begin_session(session)      # or store.begin_refresh()
    profile = ...fetch the joined row...
    store.complete_fetch(stamp, profile)

Each ``begin_*`` issues a new monotonic stamp.  ``complete_fetch``
applies a result only if no newer fetch was issued in the meantime, so
a slow startup query can never overwrite the outcome of a later
sign-in, sign-out or refresh.

Usage::

    from userconsole.auth import SessionStore

    store = SessionStore(logger=StructuredLogger(name="session"))
    unsubscribe = store.subscribe(lambda snap: print(snap.state))
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from userconsole.logger import StructuredLogger
from userconsole.models.auth_models import AuthSnapshot, SessionInfo
from userconsole.models.enums import AuthState
from userconsole.models.user import UserProfile

Observer = Callable[[AuthSnapshot], None]


class SessionStore:
    """Process-wide holder of "who is signed in and what is their profile".

    Each instance maintains its own state; pass a single ``SessionStore``
    through the ``Console`` so every view shares it.
    """

    def __init__(self, logger: StructuredLogger) -> None:
        self._logger = logger
        self._lock: threading.RLock = threading.RLock()
        self._state: AuthState = AuthState.UNINITIALIZED
        self._session: Optional[SessionInfo] = None
        self._profile: Optional[UserProfile] = None
        self._issued: int = 0
        self._applied: int = 0
        self._observers: list[Observer] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    def snapshot(self) -> AuthSnapshot:
        with self._lock:
            return self._snapshot_locked()

    @property
    def state(self) -> AuthState:
        with self._lock:
            return self._state

    @property
    def session(self) -> Optional[SessionInfo]:
        with self._lock:
            return self._session

    @property
    def profile(self) -> Optional[UserProfile]:
        with self._lock:
            return self._profile

    @property
    def is_authenticated(self) -> bool:
        """``True`` when a session is present (profile may still be loading)."""
        with self._lock:
            return self._session is not None

    @property
    def is_admin(self) -> bool:
        with self._lock:
            return self._profile is not None and self._profile.is_admin

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register *observer* and return a callable that unregisters it.

        Observers are called after every state change, outside the
        store's lock, in subscription order.
        """
        with self._lock:
            self._observers.append(observer)

        def _unsubscribe() -> None:
            with self._lock:
                if observer in self._observers:
                    self._observers.remove(observer)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def begin_session(self, session: Optional[SessionInfo]) -> int:
        """Replace the session reference and return the stamp for its fetch.

        ``None`` signs out immediately: the profile is cleared and the
        transition is applied without waiting for a fetch.  A session for
        a different subject clears the old profile and enters
        ``AUTHENTICATED_LOADING``; the same subject (token refresh) keeps
        the current profile until the new fetch lands.
        """
        with self._lock:
            self._issued += 1
            stamp = self._issued
            previous = self._session
            self._session = session

            if session is None:
                self._profile = None
                self._state = AuthState.UNAUTHENTICATED
                self._applied = stamp
            elif previous is None or previous.user_id != session.user_id:
                self._profile = None
                self._state = AuthState.AUTHENTICATED_LOADING

            snapshot = self._snapshot_locked()

        self._publish(snapshot)
        return stamp

    def begin_refresh(self) -> Optional[tuple[int, str]]:
        """Issue a stamp for re-fetching the current subject's profile.

        Returns ``(stamp, user_id)``, or ``None`` when no session is active.
        """
        with self._lock:
            if self._session is None:
                return None
            self._issued += 1
            return self._issued, self._session.user_id

    def complete_fetch(self, stamp: int, profile: Optional[UserProfile]) -> bool:
        """Apply the outcome of the fetch identified by *stamp*.

        ``profile=None`` records a failed fetch (``PROFILE_UNAVAILABLE``).

        Returns:
            ``True`` if applied, ``False`` if a newer fetch superseded it.
        """
        with self._lock:
            if stamp != self._issued or stamp <= self._applied:
                self._logger.debug(
                    "Discarding stale profile fetch %d (latest issued %d, applied %d).",
                    stamp,
                    self._issued,
                    self._applied,
                )
                return False

            self._applied = stamp
            self._profile = profile
            self._state = (
                AuthState.AUTHENTICATED_READY
                if profile is not None
                else AuthState.PROFILE_UNAVAILABLE
            )
            snapshot = self._snapshot_locked()

        self._publish(snapshot)
        return True

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _snapshot_locked(self) -> AuthSnapshot:
        return AuthSnapshot(
            state=self._state,
            session=self._session,
            profile=self._profile,
            version=self._issued,
        )

    def _publish(self, snapshot: AuthSnapshot) -> None:
        with self._lock:
            observers = list(self._observers)
        for observer in observers:
            try:
                observer(snapshot)
            except Exception as exc:
                self._logger.warning(
                    "Session observer %r failed: %s", observer, exc, exc_info=True,
                )
