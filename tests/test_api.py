"""
HTTP API tests.

The store and the Search Console connector are swapped through FastAPI
dependency overrides; the reconciler runs for real against the in-memory store.
"""
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from conftest import FakeProvider
from sitepulse.api.deps import get_search_console_connector, get_store
from sitepulse.connectors.search_console_connector import SearchConsoleConnector
from sitepulse.exceptions import (
    AuthError,
    NotConfiguredError,
    QuotaOrDisabledAPIError,
    SearchConsolePermissionError,
)
from sitepulse.main import app
from sitepulse.stores.base import MetricRecord
from sitepulse.stores.memory_store import InMemoryStore
from sitepulse.utils.helpers import utc_today


def rows_for_last(days, clicks=10):
    today = utc_today()
    return [
        {"date": (today - timedelta(days=i)).isoformat(), "clicks": clicks, "impressions": clicks * 10,
         "ctr": 0.1, "position": 2.0}
        for i in range(days)
    ]


class FakeConnector(FakeProvider):
    """Provider plus the breakdown calls the live endpoint uses"""

    def __init__(self, rows=None, error=None):
        super().__init__(rows=rows, error=error)
        self.dimension_calls = []

    async def get_aggregated_data(self, site_identifier, days, fallback_domain=None):
        SearchConsoleConnector.resolve_site_url(site_identifier, fallback_domain)
        return await super().get_aggregated_data(site_identifier, days, fallback_domain)

    async def _breakdown(self, dimension, days, limit):
        self.dimension_calls.append({"dimension": dimension, "days": days, "limit": limit})
        if self.error:
            raise self.error
        return [{dimension: "seo tools", "clicks": 3, "impressions": 40, "ctr": 0.075, "position": 5.1}]

    async def get_query_data(self, site_identifier, days=30, limit=100, fallback_domain=None):
        return await self._breakdown("query", days, limit)

    async def get_page_data(self, site_identifier, days=30, limit=100, fallback_domain=None):
        return await self._breakdown("page", days, limit)

    async def get_country_data(self, site_identifier, days=30, fallback_domain=None):
        return await self._breakdown("country", days, None)

    async def get_device_data(self, site_identifier, days=30, fallback_domain=None):
        return await self._breakdown("device", days, None)

    async def list_sites(self):
        return []


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def connector():
    return FakeConnector()


@pytest.fixture
def client(store, connector):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_search_console_connector] = lambda: connector
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def site_id(store):
    return store.create_site(name="Example", domain="example.com", search_console_url="sc-domain:example.com").id


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_status_reports_thresholds(client):
    body = client.get("/status").json()
    assert body["sync_thresholds"]["retention_days"] == 90
    assert body["search_console"]["fetch_count"] == 0


class TestSites:

    def test_crud(self, client):
        created = client.post("/sites", json={"name": "Shop", "domain": "shop.com"})
        assert created.status_code == 201
        site_id = created.json()["data"]["id"]

        updated = client.put(f"/sites/{site_id}", json={"category": "ecommerce"})
        assert updated.json()["data"]["category"] == "ecommerce"
        assert updated.json()["data"]["name"] == "Shop"

        listed = client.get("/sites").json()
        assert listed["count"] == 1

        assert client.delete(f"/sites/{site_id}").status_code == 200
        assert client.get(f"/sites/{site_id}").status_code == 404

    def test_create_requires_domain(self, client):
        assert client.post("/sites", json={"name": "Shop"}).status_code == 422

    def test_update_missing_site(self, client):
        assert client.put("/sites/99", json={"name": "x"}).status_code == 404


class TestSync:

    def test_first_sync_is_full(self, client, connector, site_id):
        connector.rows = rows_for_last(90)

        response = client.post(f"/sites/{site_id}/metrics/sync")

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["count"] == 90
        assert body["incremental"] is False
        assert body["cached"] is False

    def test_fresh_cache_is_not_refetched(self, client, connector, store, site_id):
        today = utc_today()
        store.bulk_upsert([MetricRecord(site_id=site_id, date=today - timedelta(days=i)) for i in range(3)])

        body = client.post(f"/sites/{site_id}/metrics/sync").json()

        assert body["cached"] is True
        assert body["count"] == 0
        assert connector.calls == []

    def test_force_refetches(self, client, connector, store, site_id):
        today = utc_today()
        store.bulk_upsert([MetricRecord(site_id=site_id, date=today - timedelta(days=i)) for i in range(3)])
        connector.rows = rows_for_last(3)

        body = client.post(f"/sites/{site_id}/metrics/sync", params={"force": "true"}).json()

        assert body["cached"] is False
        assert body["count"] == 3

    def test_unknown_site(self, client):
        assert client.post("/sites/99/metrics/sync").status_code == 404

    @pytest.mark.parametrize("error,fragment", [
        (AuthError("token expired"), "re-authenticate"),
        (SearchConsolePermissionError("forbidden"), "Verify that the service account"),
        (QuotaOrDisabledAPIError("disabled"), "disabled or over quota"),
        (NotConfiguredError("no property"), "Set the Search Console URL manually"),
        (RuntimeError("socket closed"), "socket closed"),
    ])
    def test_provider_errors_are_described(self, client, connector, site_id, error, fragment):
        connector.error = error

        response = client.post(f"/sites/{site_id}/metrics/sync")

        assert response.status_code == 500
        assert fragment in response.json()["detail"]

    def test_site_without_property_or_domain_is_not_configured(self, client, store):
        site = store.create_site(name="Bare", domain="  ", search_console_url=None)

        response = client.post(f"/sites/{site.id}/metrics/sync")

        assert response.status_code == 500
        assert "Set the Search Console URL manually" in response.json()["detail"]


class TestRead:

    def test_recent_metrics_newest_first(self, client, connector, site_id):
        connector.rows = rows_for_last(5)
        client.post(f"/sites/{site_id}/metrics/sync")

        body = client.get(f"/sites/{site_id}/metrics", params={"limit": 2}).json()

        assert body["count"] == 2
        assert body["data"][0]["date"] == utc_today().isoformat()
        assert set(body["data"][0]) == {"siteId", "date", "clicks", "impressions", "ctr", "position"}

    def test_daily_series_oldest_first(self, client, connector, site_id):
        connector.rows = rows_for_last(10)
        client.post(f"/sites/{site_id}/metrics/sync")

        body = client.get(f"/sites/{site_id}/metrics/daily", params={"days": 7}).json()

        dates = [row["date"] for row in body["data"]]
        assert dates == sorted(dates)
        assert body["count"] == 8  # [today-7, today]
        assert body["cached"] is False

    @pytest.mark.parametrize("days", [0, 366])
    def test_daily_series_rejects_bad_period(self, client, site_id, days):
        assert client.get(f"/sites/{site_id}/metrics/daily", params={"days": days}).status_code == 400

    def test_breakdown(self, client, connector, site_id):
        body = client.get(f"/sites/{site_id}/metrics/queries", params={"dimension": "page", "limit": 5}).json()

        assert body["data"][0]["page"] == "seo tools"
        assert connector.dimension_calls == [{"dimension": "page", "days": 30, "limit": 5}]

    def test_breakdown_device_ignores_limit(self, client, connector, site_id):
        client.get(f"/sites/{site_id}/metrics/queries", params={"dimension": "device", "limit": 5})
        assert connector.dimension_calls[0]["limit"] is None

    def test_breakdown_country_ignores_limit(self, client, connector, site_id):
        body = client.get(f"/sites/{site_id}/metrics/queries", params={"dimension": "country", "limit": 5}).json()

        assert body["data"][0]["country"] == "seo tools"
        assert connector.dimension_calls == [{"dimension": "country", "days": 30, "limit": None}]

    def test_breakdown_rejects_unknown_dimension(self, client, site_id):
        response = client.get(f"/sites/{site_id}/metrics/queries", params={"dimension": "browser"})
        assert response.status_code == 400

    def test_breakdown_unknown_site(self, client):
        assert client.get("/sites/99/metrics/queries").status_code == 404


class TestClear:

    def test_clear_one_site(self, client, connector, store, site_id):
        other = store.create_site(name="Other", domain="other.com").id
        connector.rows = rows_for_last(3)
        client.post(f"/sites/{site_id}/metrics/sync")
        client.post(f"/sites/{other}/metrics/sync")

        body = client.post("/metrics/clear", params={"site_id": site_id}).json()

        assert body["deleted"] == 3
        assert store.get_recent(site_id, 10) == []
        assert len(store.get_recent(other, 10)) == 3

    def test_clear_all(self, client, connector, site_id):
        connector.rows = rows_for_last(3)
        client.post(f"/sites/{site_id}/metrics/sync")

        body = client.post("/metrics/clear").json()

        assert body["deleted"] == 3
        assert body["message"] == "All Search Console data cleared"


def test_import_with_empty_account(client):
    body = client.post("/sites/import-search-console").json()
    assert body["sites_loaded"] == 0
    assert body["total_google_sites"] == 0
