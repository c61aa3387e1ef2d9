"""
Topapi Backend: Test Configuration (conftest.py)
==================================================

What:  Shared fixtures and in-memory doubles for the whole suite.
How:   The app is built around a ServiceContext holding a FakeRecordStore
       and a FakeIdentityProvider, so no database or network is touched.

Fixture Hierarchy (all function-scoped):
    settings ─┐
    store ────┼── context ── app ── client
    identity ─┘
    admin_headers / staff_headers / other_headers: bearer headers for the
    three known accounts

Doubles:
    FakeRecordStore      rows in dicts; records every call in `calls`;
                         `fail_on[method] = exc` makes that method raise
    FakeIdentityProvider token → user map; accounts by id; records
                         signups, deletions and every call
"""

import os

# Override settings for testing BEFORE any topapi imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["SUPABASE_URL"] = "http://identity.test"
os.environ["SUPABASE_ANON_KEY"] = "anon-key-not-real"
os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "service-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"

import copy  # noqa: E402
import uuid  # noqa: E402
from datetime import datetime, timedelta, timezone  # noqa: E402
from typing import Any, Dict, List, Mapping, Optional, Tuple  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from topapi.config import Settings  # noqa: E402
from topapi.context import ServiceContext  # noqa: E402
from topapi.exceptions import IdentityRejectedError  # noqa: E402
from topapi.main import create_app  # noqa: E402
from topapi.services.identity_base import IdentityProvider  # noqa: E402
from topapi.services.store_base import RecordStore, Row  # noqa: E402


ADMIN_ID = "11111111-1111-4111-8111-111111111111"
STAFF_ID = "22222222-2222-4222-8222-222222222222"
OTHER_ID = "33333333-3333-4333-8333-333333333333"

ADMIN_TOKEN = "admin-token"
STAFF_TOKEN = "staff-token"
OTHER_TOKEN = "other-token"


# ══════════════════════════════════════════════════════════════════════════
# In-memory Record Store
# ══════════════════════════════════════════════════════════════════════════

class FakeRecordStore(RecordStore):
    """RecordStore double. Rows get an id and an increasing created_at on insert."""

    KEYLESS_TABLES = {"profiles"}

    def __init__(self):
        self.tables: Dict[str, List[Row]] = {}
        self.calls: List[Tuple[str, str]] = []
        self.fail_on: Dict[str, Exception] = {}
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    # ── Test helpers ──────────────────────────────────────────────────────

    def _tick(self) -> datetime:
        self._clock += timedelta(seconds=1)
        return self._clock

    def seed(self, table: str, **values: Any) -> Row:
        row = dict(values)
        if table not in self.KEYLESS_TABLES:
            row.setdefault("id", str(uuid.uuid4()))
        row.setdefault("created_at", self._tick())
        self.tables.setdefault(table, []).append(row)
        return copy.deepcopy(row)

    def calls_to(self, table: str) -> List[str]:
        return [method for method, name in self.calls if name == table]

    def _record(self, method: str, table: str) -> None:
        self.calls.append((method, table))
        if method in self.fail_on:
            raise self.fail_on[method]

    def _find(self, table: str, key: str, value: Any) -> Optional[Row]:
        for row in self.tables.get(table, []):
            if str(row.get(key)) == str(value):
                return row
        return None

    # ── RecordStore ───────────────────────────────────────────────────────

    async def select_page(
        self,
        table: str,
        *,
        offset: int,
        limit: int,
        filters: Optional[Mapping[str, Any]] = None,
        search: Optional[Tuple[str, str]] = None,
    ) -> Tuple[List[Row], int]:
        self._record("select_page", table)
        rows = list(self.tables.get(table, []))
        for name, value in (filters or {}).items():
            rows = [row for row in rows if str(row.get(name)) == str(value)]
        if search:
            column, term = search
            rows = [row for row in rows if term.lower() in str(row.get(column, "")).lower()]
        rows.sort(key=lambda row: row["created_at"], reverse=True)
        return copy.deepcopy(rows[offset:offset + limit]), len(rows)

    async def select_one(self, table: str, key: str, value: Any) -> Optional[Row]:
        self._record("select_one", table)
        row = self._find(table, key, value)
        return copy.deepcopy(row) if row is not None else None

    async def insert(self, table: str, values: Mapping[str, Any]) -> Row:
        self._record("insert", table)
        return self.seed(table, **dict(values))

    async def update(
        self, table: str, key: str, value: Any, changes: Mapping[str, Any]
    ) -> Optional[Row]:
        self._record("update", table)
        row = self._find(table, key, value)
        if row is None:
            return None
        row.update(changes)
        return copy.deepcopy(row)

    async def delete(self, table: str, key: str, value: Any) -> int:
        self._record("delete", table)
        before = self.tables.get(table, [])
        after = [row for row in before if str(row.get(key)) != str(value)]
        self.tables[table] = after
        return len(before) - len(after)

    async def ping(self) -> None:
        self._record("ping", "")


# ══════════════════════════════════════════════════════════════════════════
# In-memory Identity Provider
# ══════════════════════════════════════════════════════════════════════════

def make_user(user_id: str, email: str, role: str = "staff", **metadata: Any) -> Dict[str, Any]:
    return {
        "id": user_id,
        "email": email,
        "user_metadata": {"role": role, **metadata},
    }


class FakeIdentityProvider(IdentityProvider):
    def __init__(self, admin_access: bool = True):
        self.admin_access = admin_access
        self.tokens: Dict[str, Dict[str, Any]] = {}
        self.accounts: Dict[str, Dict[str, Any]] = {}
        self.passwords: Dict[str, str] = {}
        self.refresh_tokens: Dict[str, str] = {}
        self.deleted_users: List[str] = []
        self.signed_out: List[str] = []
        self.recovery_emails: List[Tuple[str, str]] = []
        self.password_changes: List[Tuple[str, str]] = []
        self.calls: List[str] = []
        self.fail_on: Dict[str, Exception] = {}

    def _record(self, method: str) -> None:
        self.calls.append(method)
        if method in self.fail_on:
            raise self.fail_on[method]

    def add_account(self, user: Dict[str, Any], token: str, password: str = "secret123") -> None:
        self.accounts[user["id"]] = user
        self.tokens[token] = user
        self.passwords[user["email"]] = password
        self.refresh_tokens[f"refresh-{token}"] = user["id"]

    def _session_for(self, user: Dict[str, Any]) -> Dict[str, Any]:
        token = f"token-{user['id']}"
        self.tokens[token] = user
        self.refresh_tokens[f"refresh-{token}"] = user["id"]
        return {
            "access_token": token,
            "refresh_token": f"refresh-{token}",
            "expires_in": 3600,
            "token_type": "bearer",
        }

    @property
    def has_admin_access(self) -> bool:
        return self.admin_access

    async def get_user(self, access_token: str) -> Optional[Dict[str, Any]]:
        self._record("get_user")
        if access_token not in self.tokens:
            raise IdentityRejectedError("invalid JWT: unable to parse or verify signature", 401)
        return self.tokens[access_token]

    async def sign_up(self, email: str, password: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        self._record("sign_up")
        if email in self.passwords:
            raise IdentityRejectedError("User already registered", 422)
        user = {"id": str(uuid.uuid4()), "email": email, "user_metadata": dict(metadata)}
        self.accounts[user["id"]] = user
        self.passwords[email] = password
        return {"user": user, "session": self._session_for(user)}

    async def sign_in_with_password(self, email: str, password: str) -> Dict[str, Any]:
        self._record("sign_in_with_password")
        if self.passwords.get(email) != password:
            raise IdentityRejectedError("Invalid login credentials", 400)
        user = next(u for u in self.accounts.values() if u["email"] == email)
        return {"user": user, "session": self._session_for(user)}

    async def refresh_session(self, refresh_token: str) -> Dict[str, Any]:
        self._record("refresh_session")
        if refresh_token not in self.refresh_tokens:
            raise IdentityRejectedError("Invalid Refresh Token: Refresh Token Not Found", 400)
        user = self.accounts[self.refresh_tokens[refresh_token]]
        return {"user": user, "session": self._session_for(user)}

    async def sign_out(self, access_token: str) -> None:
        self._record("sign_out")
        self.signed_out.append(access_token)

    async def reset_password_for_email(self, email: str, redirect_to: str) -> None:
        self._record("reset_password_for_email")
        self.recovery_emails.append((email, redirect_to))

    async def update_user(self, access_token: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        self._record("update_user")
        user = self.tokens[access_token]
        self.password_changes.append((user["id"], attributes.get("password")))
        return user

    async def admin_get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        self._record("admin_get_user")
        return self.accounts.get(user_id)

    async def admin_update_user(self, user_id: str, attributes: Dict[str, Any]) -> Dict[str, Any]:
        self._record("admin_update_user")
        user = self.accounts.setdefault(user_id, {"id": user_id, "user_metadata": {}})
        if "password" in attributes:
            self.password_changes.append((user_id, attributes["password"]))
        if "user_metadata" in attributes:
            user["user_metadata"] = dict(attributes["user_metadata"])
        return user

    async def admin_delete_user(self, user_id: str) -> None:
        self._record("admin_delete_user")
        self.deleted_users.append(user_id)
        self.accounts.pop(user_id, None)

    async def health_check(self) -> bool:
        return "health_check" not in self.fail_on


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        supabase_url="http://identity.test",
        supabase_anon_key="anon-key-not-real",
        supabase_service_role_key="service-key-not-real",
        rate_limit_requests=1000,
        rate_limit_window=900,
        app_url="http://localhost:3000",
    )


@pytest.fixture
def store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def identity() -> FakeIdentityProvider:
    provider = FakeIdentityProvider()
    provider.add_account(make_user(ADMIN_ID, "admin@example.com", role="Admin"), ADMIN_TOKEN)
    provider.add_account(make_user(STAFF_ID, "staff@example.com"), STAFF_TOKEN)
    provider.add_account(make_user(OTHER_ID, "other@example.com"), OTHER_TOKEN)
    return provider


@pytest.fixture
def context(settings, store, identity) -> ServiceContext:
    return ServiceContext.create(settings, store, identity)


@pytest.fixture
def app(settings, context):
    return create_app(settings=settings, context=context)


@pytest_asyncio.fixture
async def client(app):
    """
    HTTPX AsyncClient routed straight into the ASGI app.

    Usage:
        async def test_health(client):
            response = await client.get("/api/health")
            assert response.status_code == 200
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


@pytest.fixture
def admin_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {ADMIN_TOKEN}"}


@pytest.fixture
def staff_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {STAFF_TOKEN}"}


@pytest.fixture
def other_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {OTHER_TOKEN}"}
