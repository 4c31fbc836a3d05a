# tests/test_auth.py
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from click.testing import CliRunner

from app.cli import cli
from app.core.config import get_settings
from app.core.errors import AuthenticationFailed
from app.core.scope import Caller
from app.core.security import create_session_token, decode_session_token, hash_password, verify_password


@pytest.fixture
def with_password(seeded):
    seeded.update_user("u1", {"password_hash": hash_password("hunter2")})
    return seeded


def test_password_hashing():
    hashed = hash_password("s3cret")
    assert hashed.startswith("$2")
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password("s3cret", "")
    assert not verify_password("s3cret", "not-a-bcrypt-hash")


def test_token_round_trip():
    caller = decode_session_token(create_session_token(Caller(user_id="u1", role="client", organization_id="org-A")))
    assert caller == Caller(user_id="u1", role="client", organization_id="org-A")

    staff = decode_session_token(create_session_token(Caller(user_id="agent-1", role="agent")))
    assert staff.organization_id is None


def test_expired_or_forged_token_rejected():
    past = datetime.now(timezone.utc) - timedelta(hours=1)
    expired = jwt.encode(
        {"sub": "u1", "role": "client", "iat": past, "exp": past}, get_settings().JWT_SECRET, algorithm="HS256"
    )
    with pytest.raises(AuthenticationFailed):
        decode_session_token(expired)

    forged = jwt.encode({"sub": "u1", "role": "admin"}, "another-secret", algorithm="HS256")
    with pytest.raises(AuthenticationFailed):
        decode_session_token(forged)


def test_login_and_me(client, with_password):
    r = client.post("/api/auth/login", json={"email": "carla@acme.test", "password": "hunter2"})
    assert r.status_code == 200
    body = r.json()
    assert body["user"]["id"] == "u1"
    assert "password_hash" not in body["user"]

    me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["organization_id"] == "org-A"


def test_login_failures(client, with_password):
    assert client.post("/api/auth/login", json={"email": "carla@acme.test", "password": "nope"}).status_code == 401
    assert client.post("/api/auth/login", json={"email": "ghost@acme.test", "password": "hunter2"}).status_code == 401
    # seeded staff have no password set
    assert client.post("/api/auth/login", json={"email": "agent@portal.test", "password": "x"}).status_code == 401


def test_seed_admin_hash_only():
    result = CliRunner().invoke(cli, ["seed-admin", "--password", "pw", "--hash-only"])
    assert result.exit_code == 0
    assert verify_password("pw", result.output.strip())


def test_seed_admin_creates_user(store, monkeypatch):
    monkeypatch.setattr("app.cli.get_store", lambda: store)

    result = CliRunner().invoke(
        cli, ["seed-admin", "--email", "root@portal.test", "--password", "pw", "--name", "Root Admin"]
    )
    assert result.exit_code == 0, result.output
    user = store.get_user_by_email("root@portal.test")
    assert user.role == "admin"
    assert user.avatar == "RA"

    again = CliRunner().invoke(cli, ["seed-admin", "--email", "root@portal.test", "--password", "pw"])
    assert again.exit_code != 0
    assert "already exists" in again.output
