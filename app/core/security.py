# app/core/security.py
"""Password hashing and session tokens."""
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from app.core.config import get_settings
from app.core.errors import AuthenticationFailed
from app.core.scope import Caller

ALGORITHM = "HS256"


def hash_password(password: str, rounds: int | None = None) -> str:
    rounds = rounds or get_settings().BCRYPT_ROUNDS
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed or placeholder hash
        return False


def create_session_token(caller: Caller, expires_hours: int | None = None) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "sub": caller.user_id,
        "role": caller.role,
        "org_id": caller.organization_id or "",
        "iat": now,
        "exp": now + timedelta(hours=expires_hours or settings.JWT_EXPIRES_HOURS),
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=ALGORITHM)


def decode_session_token(token: str) -> Caller:
    """Verify a session token and return the identity it carries.

    Raises:
        AuthenticationFailed: expired, tampered or malformed token
    """
    try:
        payload = jwt.decode(token, get_settings().JWT_SECRET, algorithms=[ALGORITHM])
    except jwt.InvalidTokenError as exc:
        raise AuthenticationFailed("invalid or expired token") from exc

    user_id = payload.get("sub")
    role = payload.get("role")
    if not user_id or not role:
        raise AuthenticationFailed("invalid or expired token")
    return Caller(user_id=user_id, role=role, organization_id=payload.get("org_id") or None)
