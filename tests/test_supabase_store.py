"""
Supabase store tests with a mocked PostgREST client.
"""
from datetime import date, datetime
from unittest.mock import MagicMock

import pytest

from sitepulse.stores.base import MetricRecord
from sitepulse.stores.supabase_store import METRICS_TABLE, SupabaseStore


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def store(client):
    return SupabaseStore(client)


def test_requires_url_and_key():
    with pytest.raises(ValueError):
        SupabaseStore.from_settings(None, "key")


def test_upsert_uses_site_date_conflict_target(store, client):
    written = store.bulk_upsert([
        MetricRecord(site_id=1, date=date(2026, 3, 14), clicks=3),
        MetricRecord(site_id=1, date=date(2026, 3, 14), clicks=5),
        MetricRecord(site_id=1, date=date(2026, 3, 15), clicks=1),
    ])

    assert written == 2
    client.table.assert_called_with(METRICS_TABLE)
    payload, = client.table.return_value.upsert.call_args.args
    assert client.table.return_value.upsert.call_args.kwargs == {"on_conflict": "site_id,date"}
    assert [(row["date"], row["clicks"]) for row in payload] == [("2026-03-14", 5), ("2026-03-15", 1)]
    assert all(row["created_at"] for row in payload)


def test_empty_upsert_skips_request(store, client):
    assert store.bulk_upsert([]) == 0
    client.table.assert_not_called()


def test_existing_dates_parsed(store, client):
    query = client.table.return_value.select.return_value.eq.return_value.gte.return_value.lte.return_value
    query.execute.return_value.data = [{"date": "2026-03-14"}, {"date": "2026-03-15"}]

    assert store.get_existing_dates(1, date(2026, 3, 1), date(2026, 3, 15)) == {date(2026, 3, 14), date(2026, 3, 15)}


def test_recent_rows_parse_timestamps(store, client):
    query = client.table.return_value.select.return_value.eq.return_value.order.return_value.limit.return_value
    query.execute.return_value.data = [{
        "site_id": 1, "date": "2026-03-15", "clicks": 2, "impressions": 30,
        "ctr": "0.0667", "position": "4.2", "created_at": "2026-03-15T09:30:00+00:00",
    }]

    record, = store.get_recent(1, 1)

    assert record.ctr == pytest.approx(0.0667)
    assert record.created_at == datetime(2026, 3, 15, 9, 30)
    client.table.return_value.select.return_value.eq.return_value.order.assert_called_with("date", desc=True)


def test_delete_older_than_is_strict(store, client):
    query = client.table.return_value.delete.return_value.eq.return_value.lt.return_value
    query.execute.return_value.data = [{"id": 1}, {"id": 2}]

    assert store.delete_older_than(1, date(2025, 12, 15)) == 2
    client.table.return_value.delete.return_value.eq.return_value.lt.assert_called_with("date", "2025-12-15")


def test_clear_all_applies_catch_all_filter(store, client):
    client.table.return_value.delete.return_value.gte.return_value.execute.return_value.data = [{"id": 1}]

    assert store.clear() == 1
    client.table.return_value.delete.return_value.gte.assert_called_with("id", 0)
