# app/core/deps.py
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.errors import AuthenticationFailed
from app.core.scope import Caller, Scope, resolve_scope
from app.core.security import decode_session_token
from app.store.factory import get_store  # noqa: F401  (re-exported for routers)

bearer = HTTPBearer(auto_error=False)


def get_caller(credentials: HTTPAuthorizationCredentials | None = Depends(bearer)) -> Caller:
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthenticationFailed("missing authorization header")
    return decode_session_token(credentials.credentials)


def get_scope(caller: Caller = Depends(get_caller)) -> Scope:
    return resolve_scope(caller)
