# app/auth/routes.py
from fastapi import APIRouter, Depends

from app.auth import services as auth_service
from app.auth.schemas import LoginRequest, LoginResponse
from app.core.deps import get_caller, get_store
from app.core.scope import Caller
from app.store.base import EntityStore
from app.user.schemas import UserOut

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/login", response_model=LoginResponse)
def login(body: LoginRequest, store: EntityStore = Depends(get_store)):
    user = auth_service.authenticate(store, body.email, body.password)
    return {"token": auth_service.issue_token(user), "user": user.model_dump()}


@router.get("/me", response_model=UserOut)
def me(store: EntityStore = Depends(get_store), caller: Caller = Depends(get_caller)):
    return auth_service.current_user(store, caller)
