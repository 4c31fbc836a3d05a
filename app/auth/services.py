# app/auth/services.py
import logging

from app.core.errors import AuthenticationFailed, NotFound
from app.core.scope import Caller
from app.core.security import create_session_token, verify_password
from app.store.base import EntityStore
from app.store.records import User

logger = logging.getLogger(__name__)


def authenticate(store: EntityStore, email: str, password: str) -> User:
    try:
        user = store.get_user_by_email(email)
    except NotFound as exc:
        raise AuthenticationFailed("invalid email or password") from exc
    if not verify_password(password, user.password_hash):
        logger.info("failed login for %s", email)
        raise AuthenticationFailed("invalid email or password")
    return user


def issue_token(user: User) -> str:
    return create_session_token(Caller(user_id=user.id, role=user.role, organization_id=user.organization_id))


def current_user(store: EntityStore, caller: Caller) -> User:
    try:
        return store.get_user(caller.user_id)
    except NotFound as exc:
        raise AuthenticationFailed("user not found") from exc
