# app/user/routes.py
from fastapi import APIRouter, Depends

from app.core.deps import get_scope, get_store
from app.core.scope import Scope
from app.store.base import EntityStore
from app.user import services as user_service
from app.user.schemas import UserCreate, UserOut, UserUpdate

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=list[UserOut])
def list_all(store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return user_service.list_users(store, scope)


@router.get("/{user_id}", response_model=UserOut)
def get(user_id: str, store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return user_service.get_user(store, scope, user_id)


@router.post("", response_model=UserOut, status_code=201)
def create(user: UserCreate, store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    return user_service.create_user(store, scope, user)


@router.put("/{user_id}", response_model=UserOut)
def update(
    user_id: str,
    user: UserUpdate,
    store: EntityStore = Depends(get_store),
    scope: Scope = Depends(get_scope),
):
    return user_service.update_user(store, scope, user_id, user)


@router.delete("/{user_id}")
def delete(user_id: str, store: EntityStore = Depends(get_store), scope: Scope = Depends(get_scope)):
    user_service.delete_user(store, scope, user_id)
    return {"status": "deleted"}
