# app/store/factory.py
from functools import lru_cache

from app.core.config import Settings, get_settings
from app.store.base import EntityStore


def build_store(settings: Settings) -> EntityStore:
    """Instantiate the adapter selected by ``STORAGE_BACKEND``."""
    if settings.STORAGE_BACKEND == "redis":
        from app.store.kv import RedisEntityStore

        return RedisEntityStore.from_url(settings.REDIS_URL, prefix=settings.REDIS_KEY_PREFIX)

    from app.core.database import engine
    from app.store.sql import SqlEntityStore

    return SqlEntityStore.from_engine(engine)


@lru_cache
def get_store() -> EntityStore:
    return build_store(get_settings())
