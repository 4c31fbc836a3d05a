# tests/conftest.py
"""
Shared fixtures.

Every store-backed test runs twice: once against the relational adapter
(in-memory SQLite) and once against the key-value adapter (fakeredis), so
the two stay behaviourally identical.
"""
import os

# keep bcrypt cheap and settings deterministic before the app is imported
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["JWT_SECRET"] = "test-secret"

import fakeredis
import pytest
from fastapi.testclient import TestClient

from app.core.database import make_engine
from app.core.scope import Caller, Scope
from app.core.security import create_session_token
from app.main import app
from app.store.factory import get_store
from app.store.kv import RedisEntityStore
from app.store.records import Organization, User
from app.store.sql import SqlEntityStore


def make_sql_store() -> SqlEntityStore:
    return SqlEntityStore.from_engine(make_engine("sqlite://"))


def make_kv_store() -> RedisEntityStore:
    return RedisEntityStore(fakeredis.FakeRedis(decode_responses=True), prefix="test")


@pytest.fixture(params=["sql", "kv"])
def store(request):
    return make_sql_store() if request.param == "sql" else make_kv_store()


@pytest.fixture
def seeded(store):
    """Two tenants, internal staff and one client per tenant."""
    store.create_organization(Organization(id="org-A", name="Acme", contact_email="ops@acme.test"))
    store.create_organization(Organization(id="org-B", name="Globex", contact_email="ops@globex.test", plan="enterprise"))
    store.create_user(User(id="admin-1", name="Ada Admin", email="admin@portal.test", role="admin", avatar="AA"))
    store.create_user(User(id="agent-1", name="Alan Agent", email="agent@portal.test", role="agent", avatar="AA"))
    store.create_user(
        User(id="u1", name="Carla Client", email="carla@acme.test", role="client", organization_id="org-A", avatar="CC")
    )
    store.create_user(
        User(id="u2", name="Gus Globex", email="gus@globex.test", role="client", organization_id="org-B", avatar="GG")
    )
    return store


@pytest.fixture
def admin():
    return Scope(Caller(user_id="admin-1", role="admin"))


@pytest.fixture
def agent():
    return Scope(Caller(user_id="agent-1", role="agent"))


@pytest.fixture
def client_a():
    return Scope(Caller(user_id="u1", role="client", organization_id="org-A"))


@pytest.fixture
def client_b():
    return Scope(Caller(user_id="u2", role="client", organization_id="org-B"))


def auth_header(user_id: str, role: str, organization_id: str | None = None) -> dict:
    token = create_session_token(Caller(user_id=user_id, role=role, organization_id=organization_id))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers():
    """Bearer headers for the seeded users, keyed by fixture name."""
    return {
        "admin": auth_header("admin-1", "admin"),
        "agent": auth_header("agent-1", "agent"),
        "client_a": auth_header("u1", "client", "org-A"),
        "client_b": auth_header("u2", "client", "org-B"),
    }


@pytest.fixture
def store_pair():
    return make_sql_store(), make_kv_store()


@pytest.fixture
def client(seeded):
    """TestClient bound to the seeded store."""
    app.dependency_overrides[get_store] = lambda: seeded
    yield TestClient(app)
    app.dependency_overrides.clear()
