"""
Pytest configuration and shared fixtures.

No network and no on-disk database: the Search Console provider is faked
and SQL tests run against an in-memory SQLite engine.
"""
import os

# Must be set before sitepulse.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("METRICS_STORE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import asyncio
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from sitepulse.config import Settings
from sitepulse.connectors.base_connector import MetricsProvider
from sitepulse.models.base import enable_sqlite_foreign_keys, init_db
from sitepulse.services.sync_reconciler import SyncReconciler
from sitepulse.stores.memory_store import InMemoryStore

# Fixed "now" for every date calculation in the tests
NOW = datetime(2026, 3, 15, 10, 0, 0)
TODAY = NOW.date()


def run(coro):
    """Run an async coroutine in a sync test."""
    return asyncio.run(coro)


def days_ago(n: int) -> date:
    return TODAY - timedelta(days=n)


def make_rows(days: List[date], clicks: int = 10) -> List[Dict[str, Any]]:
    """Provider-shaped daily rows"""
    return [
        {
            "date": d.isoformat(),
            "clicks": clicks,
            "impressions": clicks * 10,
            "ctr": 0.1,
            "position": 4.5,
        }
        for d in days
    ]


class FakeProvider(MetricsProvider):
    """Returns canned rows and records every call"""

    def __init__(self, rows: Optional[List[Dict[str, Any]]] = None, error: Optional[Exception] = None):
        super().__init__("Fake Search Console")
        self.rows = rows or []
        self.error = error
        self.calls = []

    async def connect(self) -> bool:
        return True

    async def validate_connection(self) -> bool:
        return True

    async def get_aggregated_data(self, site_identifier, days, fallback_domain=None):
        self.calls.append({"site_identifier": site_identifier, "days": days, "fallback_domain": fallback_domain})
        if self.error:
            raise self.error
        return list(self.rows)


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def memory_store(clock):
    return InMemoryStore(clock=clock)


@pytest.fixture
def site(memory_store):
    return memory_store.create_site(name="Example", domain="example.com", search_console_url="sc-domain:example.com")


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def reconciler(memory_store, provider, settings, clock):
    return SyncReconciler(memory_store, provider, settings=settings, clock=clock)


@pytest.fixture
def sql_session_factory():
    """Fresh in-memory SQLite database per test"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    init_db(engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
