"""Storage backends for sites and Search Console metrics"""

from functools import lru_cache

from sitepulse.config import get_settings
from sitepulse.stores.base import DataStore, MetricsStore, SiteStore, MetricRecord, SiteRecord
from sitepulse.utils.logger import log

__all__ = [
    "DataStore",
    "MetricsStore",
    "SiteStore",
    "MetricRecord",
    "SiteRecord",
    "create_store",
    "get_store",
]


def create_store(backend: str) -> DataStore:
    """Build the storage backend named by `backend` (sql | supabase | memory)"""
    backend = (backend or "sql").lower()
    settings = get_settings()

    if backend == "sql":
        from sitepulse.stores.sql_store import SqlAlchemyStore
        return SqlAlchemyStore()
    if backend == "supabase":
        from sitepulse.stores.supabase_store import SupabaseStore
        return SupabaseStore.from_settings(settings.supabase_url, settings.supabase_key)
    if backend == "memory":
        from sitepulse.stores.memory_store import InMemoryStore
        return InMemoryStore()

    raise ValueError(f"Unknown metrics store backend: {backend!r}")


@lru_cache()
def get_store() -> DataStore:
    """Store selected by METRICS_STORE_BACKEND, created once per process"""
    store = create_store(get_settings().metrics_store_backend)
    log.info(f"Using {store.backend_name} storage backend")
    return store
