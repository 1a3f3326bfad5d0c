"""Tests for the Console context, view registry and backend client."""

import pytest

from userconsole.backend import BackendClient
from userconsole.config import AppConfig
from userconsole.console import Console, build_console
from userconsole.logger import StructuredLogger
from userconsole.models import ErrorCode
from userconsole.services import create_services
from userconsole.auth import SessionStore
from userconsole.views import ViewRegistry

from conftest import FakeSupabase


@pytest.fixture
def console(monkeypatch, tmp_path, config: AppConfig, fake_supabase: FakeSupabase) -> Console:
    monkeypatch.chdir(tmp_path)
    instance = build_console(config=config, client_factory=lambda url, key: fake_supabase)
    instance.start()
    yield instance
    instance.stop()


def _view_ids(console: Console) -> list[str]:
    return [view.view_id for view in console.available_views()]


class TestViewAccess:
    def test_signed_out_sees_nothing(self, console: Console):
        assert _view_ids(console) == []
        with pytest.raises(PermissionError):
            console.open_view("users")

    def test_member_sees_profile_only(self, console: Console, member_credentials):
        _, email, password = member_credentials
        console.services["auth_service"].sign_in(email, password)

        assert _view_ids(console) == ["profile"]
        assert console.open_view("profile") is console.services["profile_service"]
        with pytest.raises(PermissionError):
            console.open_view("users")

    def test_admin_sees_users_view(self, console: Console, admin_credentials):
        _, email, password = admin_credentials
        console.services["auth_service"].sign_in(email, password)

        assert _view_ids(console) == ["profile", "users"]
        assert console.open_view("users") is console.services["user_admin_service"]
        assert console.registry.default_view_id == "profile"

    def test_sign_out_revokes_admin_views(self, console: Console, admin_credentials):
        _, email, password = admin_credentials
        auth = console.services["auth_service"]
        auth.sign_in(email, password)

        auth.sign_out()

        assert _view_ids(console) == []
        assert not console.registry.can_access("users", console.store.profile)

    def test_unknown_view_raises_key_error(self, console: Console):
        with pytest.raises(KeyError):
            console.open_view("reports")


class TestRegistry:
    def test_reregistering_overwrites(self, logger: StructuredLogger):
        registry = ViewRegistry(logger=logger)
        registry.register("a", "First", lambda: 1)
        registry.register("a", "Second", lambda: 2)

        assert registry.get_view("a").display_name == "Second"

    def test_explicit_default(self, logger: StructuredLogger):
        registry = ViewRegistry(logger=logger)
        registry.register("a", "A", lambda: 1)
        registry.register("b", "B", lambda: 2, default=True)

        assert registry.default_view_id == "b"


class TestUnconfiguredBackend:
    @pytest.fixture
    def bare_services(self, config: AppConfig, logger: StructuredLogger):
        backend = BackendClient(supabase_url="", supabase_key="", logger=logger)
        store = SessionStore(logger=logger)
        return backend, store, create_services(backend=backend, config=config, store=store, logger=logger)

    def test_supabase_property_raises(self, bare_services):
        backend, _, _ = bare_services

        assert not backend.is_configured
        assert not backend.has_admin
        with pytest.raises(RuntimeError):
            backend.supabase

    def test_sign_in_reports_backend_unavailable(self, bare_services):
        _, store, services = bare_services
        services["auth_service"].start()

        result = services["auth_service"].sign_in("a@example.com", "secret1")

        assert result.error_code == ErrorCode.BACKEND_UNAVAILABLE
        assert store.session is None

    def test_client_factory_errors_disable_client(self, logger: StructuredLogger):
        def _bad_factory(url: str, key: str):
            raise ValueError("Invalid URL")

        backend = BackendClient(
            supabase_url="not a url", supabase_key="k", logger=logger, client_factory=_bad_factory,
        )

        assert not backend.is_configured
