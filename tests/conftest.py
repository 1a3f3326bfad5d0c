"""Pytest fixtures for console tests.

Provides an in-memory stand-in for the parts of the Supabase client the
console uses (auth, admin auth, PostgREST tables with the ``roles(name)``
expansion, and object storage), plus wired services on top of it.
"""

import io
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any, Callable, Optional

import pytest

from userconsole.auth import SessionStore
from userconsole.backend import BackendClient
from userconsole.config import AppConfig
from userconsole.logger import StructuredLogger
from userconsole.services import ServiceContainer, create_services

ADMIN_ROLE_ID = "role-admin"
USER_ROLE_ID = "role-user"
FAKE_URL = "https://fake.supabase.co"

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeAuthError(Exception):
    """Mimics ``gotrue.errors.AuthApiError``: a message plus a ``code``."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code


class FakeDatabase:
    """Rows, identities and objects shared by every fake component."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {"roles": [], "users": []}
        self.identities: dict[str, dict[str, str]] = {}
        self.objects: dict[str, dict[str, Any]] = {}
        self.calls: list[str] = []
        self.failures: dict[str, Exception] = {}
        self._clock = 0

    def now(self) -> str:
        self._clock += 1
        return (_EPOCH + timedelta(seconds=self._clock)).isoformat()

    def record(self, call: str) -> None:
        self.calls.append(call)
        if call in self.failures:
            raise self.failures.pop(call)


class FakeQuery:
    """Chainable PostgREST builder over one in-memory table."""

    def __init__(self, db: FakeDatabase, table: str) -> None:
        self._db = db
        self._table = table
        self._op = "select"
        self._columns = "*"
        self._payload: dict[str, Any] = {}
        self._filters: list[tuple[str, Any]] = []
        self._order: Optional[tuple[str, bool]] = None
        self._single = False

    def select(self, columns: str = "*") -> "FakeQuery":
        self._op, self._columns = "select", columns
        return self

    def insert(self, payload: dict[str, Any]) -> "FakeQuery":
        self._op, self._payload = "insert", dict(payload)
        return self

    def update(self, payload: dict[str, Any]) -> "FakeQuery":
        self._op, self._payload = "update", dict(payload)
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append((column, value))
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def maybe_single(self) -> "FakeQuery":
        self._single = True
        return self

    def execute(self) -> Optional[SimpleNamespace]:
        self._db.record(f"table:{self._table}:{self._op}")
        rows = self._db.tables[self._table]

        if self._op == "insert":
            row = {"created_at": self._db.now(), "updated_at": None, **self._payload}
            if any(existing["id"] == row["id"] for existing in rows):
                raise FakeAuthError("duplicate key value violates unique constraint")
            rows.append(row)
            return SimpleNamespace(data=[dict(row)])

        matched = [row for row in rows if self._matches(row)]

        if self._op == "update":
            for row in matched:
                row.update(self._payload, updated_at=self._db.now())
            return SimpleNamespace(data=[dict(row) for row in matched])

        if self._order is not None:
            column, desc = self._order
            matched = sorted(matched, key=lambda row: row[column], reverse=desc)
        result = [self._project(row) for row in matched]
        if self._single:
            # postgrest-py returns None rather than an empty response.
            return SimpleNamespace(data=result[0]) if result else None
        return SimpleNamespace(data=result)

    def _matches(self, row: dict[str, Any]) -> bool:
        return all(row.get(column) == value for column, value in self._filters)

    def _project(self, row: dict[str, Any]) -> dict[str, Any]:
        projected = dict(row)
        if "roles" in self._columns and self._table == "users":
            role = next(
                (r for r in self._db.tables["roles"] if r["id"] == row["role_id"]),
                None,
            )
            projected["roles"] = {"name": role["name"]} if role else None
        return projected


class FakeAdminAuth:
    def __init__(self, db: FakeDatabase) -> None:
        self._db = db

    def delete_user(self, user_id: str) -> None:
        self._db.record("auth:admin:delete_user")
        if user_id not in self._db.identities:
            raise FakeAuthError("User not found", code="user_not_found")
        del self._db.identities[user_id]
        # users.id references auth.users ON DELETE CASCADE
        self._db.tables["users"] = [
            row for row in self._db.tables["users"] if row["id"] != user_id
        ]


class FakeAuth:
    def __init__(self, db: FakeDatabase) -> None:
        self._db = db
        self._session: Optional[SimpleNamespace] = None
        self._listeners: list[Callable[[str, Any], None]] = []
        self.admin = FakeAdminAuth(db)

    # -- helpers used by tests -------------------------------------------

    def create_identity(self, email: str, password: str) -> str:
        user_id = str(uuid.uuid4())
        self._db.identities[user_id] = {"id": user_id, "email": email, "password": password}
        return user_id

    def emit(self, event: str, session: Optional[SimpleNamespace]) -> None:
        for listener in list(self._listeners):
            listener(event, session)

    def make_session(self, user_id: str) -> SimpleNamespace:
        identity = self._db.identities[user_id]
        return SimpleNamespace(
            user=SimpleNamespace(id=user_id, email=identity["email"]),
            access_token=f"access-{uuid.uuid4().hex}",
            refresh_token=f"refresh-{uuid.uuid4().hex}",
            expires_at=1_900_000_000,
        )

    # -- client surface -------------------------------------------------

    def get_session(self) -> Optional[SimpleNamespace]:
        self._db.record("auth:get_session")
        return self._session

    def on_auth_state_change(self, callback: Callable[[str, Any], None]) -> SimpleNamespace:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return SimpleNamespace(unsubscribe=_unsubscribe)

    def sign_up(self, credentials: dict[str, str]) -> SimpleNamespace:
        self._db.record("auth:sign_up")
        email = credentials["email"]
        if any(i["email"] == email for i in self._db.identities.values()):
            raise FakeAuthError("User already registered", code="user_already_exists")
        user_id = self.create_identity(email, credentials["password"])
        self._session = self.make_session(user_id)
        self.emit("SIGNED_IN", self._session)
        return SimpleNamespace(user=self._session.user, session=self._session)

    def sign_in_with_password(self, credentials: dict[str, str]) -> SimpleNamespace:
        self._db.record("auth:sign_in_with_password")
        for user_id, identity in self._db.identities.items():
            if identity["email"] == credentials["email"] and identity["password"] == credentials["password"]:
                self._session = self.make_session(user_id)
                self.emit("SIGNED_IN", self._session)
                return SimpleNamespace(user=self._session.user, session=self._session)
        raise FakeAuthError("Invalid login credentials", code="invalid_credentials")

    def sign_out(self) -> None:
        self._db.record("auth:sign_out")
        self._session = None
        self.emit("SIGNED_OUT", None)


class FakeBucket:
    def __init__(self, db: FakeDatabase, name: str) -> None:
        self._db = db
        self._name = name

    def upload(self, path: str, file: bytes, file_options: dict[str, str]) -> SimpleNamespace:
        self._db.record("storage:upload")
        key = f"{self._name}/{path}"
        if key in self._db.objects and file_options.get("upsert") != "true":
            raise FakeAuthError("The resource already exists")
        self._db.objects[key] = {"data": file, "options": dict(file_options)}
        return SimpleNamespace(path=path)

    def get_public_url(self, path: str) -> str:
        return f"{FAKE_URL}/storage/v1/object/public/{self._name}/{path}"


class FakeStorage:
    def __init__(self, db: FakeDatabase) -> None:
        self._db = db

    def from_(self, bucket: str) -> FakeBucket:
        return FakeBucket(self._db, bucket)


class FakeSupabase:
    """In-memory replacement for ``supabase.Client``."""

    def __init__(self) -> None:
        self.db = FakeDatabase()
        self.auth = FakeAuth(self.db)
        self.storage = FakeStorage(self.db)

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self.db, name)

    # -- seeding helpers --------------------------------------------------

    def seed_role(self, role_id: str, name: str) -> None:
        self.db.tables["roles"].append({
            "id": role_id,
            "name": name,
            "description": f"{name} role",
            "created_at": self.db.now(),
        })

    def seed_user(
        self,
        email: str,
        password: str,
        full_name: str,
        role_id: str,
    ) -> str:
        user_id = self.auth.create_identity(email, password)
        self.db.tables["users"].append({
            "id": user_id,
            "email": email,
            "full_name": full_name,
            "role_id": role_id,
            "profile_picture_url": None,
            "created_at": self.db.now(),
            "updated_at": None,
        })
        return user_id

    def fail(self, call: str, exc: Exception) -> None:
        """Raise *exc* the next time *call* (e.g. ``"table:users:insert"``) runs."""
        self.db.failures[call] = exc

    def network_calls(self) -> list[str]:
        return list(self.db.calls)


@pytest.fixture
def fake_supabase() -> FakeSupabase:
    client = FakeSupabase()
    client.seed_role(ADMIN_ROLE_ID, "admin")
    client.seed_role(USER_ROLE_ID, "user")
    return client


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        _env_file=None,
        SUPABASE_URL=FAKE_URL,
        SUPABASE_ANON_KEY="anon-key",
        SUPABASE_SERVICE_ROLE_KEY="service-role-key",
    )


@pytest.fixture
def logger(tmp_path) -> StructuredLogger:
    return StructuredLogger(
        name=f"test-{uuid.uuid4().hex}",
        stream=io.StringIO(),
        log_file=str(tmp_path / "test.log"),
    )


@pytest.fixture
def backend(fake_supabase: FakeSupabase, logger: StructuredLogger) -> BackendClient:
    return BackendClient(
        supabase_url=FAKE_URL,
        supabase_key="anon-key",
        service_role_key="service-role-key",
        logger=logger,
        client_factory=lambda url, key: fake_supabase,
    )


@pytest.fixture
def store(logger: StructuredLogger) -> SessionStore:
    return SessionStore(logger=logger)


@pytest.fixture
def services(
    backend: BackendClient,
    config: AppConfig,
    store: SessionStore,
    logger: StructuredLogger,
) -> ServiceContainer:
    return create_services(backend=backend, config=config, store=store, logger=logger)


@pytest.fixture
def auth_service(services: ServiceContainer):
    service = services["auth_service"]
    service.start()
    yield service
    service.stop()


@pytest.fixture
def admin_credentials(fake_supabase: FakeSupabase) -> tuple[str, str, str]:
    """Seed an admin; returns ``(user_id, email, password)``."""
    user_id = fake_supabase.seed_user("root@example.com", "rootpass", "Root Admin", ADMIN_ROLE_ID)
    return user_id, "root@example.com", "rootpass"


@pytest.fixture
def member_credentials(fake_supabase: FakeSupabase) -> tuple[str, str, str]:
    """Seed a regular user; returns ``(user_id, email, password)``."""
    user_id = fake_supabase.seed_user("bob@example.com", "bobpass1", "Bob", USER_ROLE_ID)
    return user_id, "bob@example.com", "bobpass1"
