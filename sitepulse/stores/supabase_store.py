"""
Supabase storage backend

Uses the same table layout as the SQL backend (`sites`,
`google_search_console_data` with a unique (site_id, date) constraint).
"""
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Set

from supabase import Client, create_client

from sitepulse.stores.base import DataStore, MetricRecord, SiteRecord, SITE_FIELDS, dedupe_records
from sitepulse.utils.helpers import parse_iso_date
from sitepulse.utils.logger import log

SITES_TABLE = "sites"
METRICS_TABLE = "google_search_console_data"


def _parse_timestamp(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    # Stored as UTC; compare against naive utcnow() elsewhere
    return parsed.replace(tzinfo=None)


def _row_to_site(row: Dict[str, Any]) -> SiteRecord:
    return SiteRecord(
        id=row["id"],
        name=row.get("name") or "",
        domain=row.get("domain") or "",
        category=row.get("category"),
        search_console_url=row.get("search_console_url"),
        owner_id=row.get("owner_id"),
        created_at=_parse_timestamp(row.get("created_at")),
        updated_at=_parse_timestamp(row.get("updated_at")),
    )


def _row_to_metric(row: Dict[str, Any]) -> MetricRecord:
    return MetricRecord(
        site_id=row["site_id"],
        date=parse_iso_date(row["date"]),
        clicks=int(row.get("clicks") or 0),
        impressions=int(row.get("impressions") or 0),
        ctr=float(row.get("ctr") or 0),
        position=float(row.get("position") or 0),
        created_at=_parse_timestamp(row.get("created_at")),
    )


class SupabaseStore(DataStore):
    """Sites and metrics in Supabase (PostgREST)"""

    backend_name = "supabase"

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def from_settings(cls, url: Optional[str], key: Optional[str]) -> "SupabaseStore":
        if not url or not key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set for the supabase backend")
        return cls(create_client(url, key))

    # -- sites -------------------------------------------------------------

    def list_sites(self) -> List[SiteRecord]:
        res = self.client.table(SITES_TABLE).select("*").order("id").execute()
        return [_row_to_site(row) for row in res.data or []]

    def get_site(self, site_id: int) -> Optional[SiteRecord]:
        res = self.client.table(SITES_TABLE).select("*").eq("id", site_id).limit(1).execute()
        rows = res.data or []
        return _row_to_site(rows[0]) if rows else None

    def create_site(self, **fields) -> SiteRecord:
        payload = {k: v for k, v in fields.items() if k in SITE_FIELDS}
        res = self.client.table(SITES_TABLE).insert(payload).execute()
        return _row_to_site(res.data[0])

    def update_site(self, site_id: int, **fields) -> Optional[SiteRecord]:
        payload = {k: v for k, v in fields.items() if k in SITE_FIELDS}
        payload["updated_at"] = datetime.utcnow().isoformat()
        res = self.client.table(SITES_TABLE).update(payload).eq("id", site_id).execute()
        rows = res.data or []
        return _row_to_site(rows[0]) if rows else None

    def delete_site(self, site_id: int) -> bool:
        self.clear(site_id)
        res = self.client.table(SITES_TABLE).delete().eq("id", site_id).execute()
        return bool(res.data)

    # -- metrics -----------------------------------------------------------

    def get_existing_dates(self, site_id: int, start: date, end: date) -> Set[date]:
        res = self.client.table(METRICS_TABLE).select("date") \
            .eq("site_id", site_id) \
            .gte("date", start.isoformat()) \
            .lte("date", end.isoformat()) \
            .execute()
        return {parse_iso_date(row["date"]) for row in res.data or []}

    def bulk_upsert(self, records: Iterable[MetricRecord]) -> int:
        records = dedupe_records(records)
        if not records:
            return 0

        now = datetime.utcnow().isoformat()
        payload = [
            {
                "site_id": r.site_id,
                "date": r.date.isoformat(),
                "clicks": r.clicks,
                "impressions": r.impressions,
                "ctr": r.ctr,
                "position": r.position,
                "created_at": now,
            }
            for r in records
        ]
        try:
            self.client.table(METRICS_TABLE).upsert(payload, on_conflict="site_id,date").execute()
        except Exception as e:
            log.error(f"Error upserting Search Console data to Supabase: {e}")
            raise
        return len(payload)

    def delete_older_than(self, site_id: int, cutoff: date) -> int:
        res = self.client.table(METRICS_TABLE).delete() \
            .eq("site_id", site_id) \
            .lt("date", cutoff.isoformat()) \
            .execute()
        return len(res.data or [])

    def get_recent(self, site_id: int, limit: int) -> List[MetricRecord]:
        res = self.client.table(METRICS_TABLE).select("*") \
            .eq("site_id", site_id) \
            .order("date", desc=True) \
            .limit(limit) \
            .execute()
        return [_row_to_metric(row) for row in res.data or []]

    def get_range(self, site_id: int, start: date, end: date, limit: int = 2000) -> List[MetricRecord]:
        res = self.client.table(METRICS_TABLE).select("*") \
            .eq("site_id", site_id) \
            .gte("date", start.isoformat()) \
            .lte("date", end.isoformat()) \
            .order("date") \
            .limit(limit) \
            .execute()
        return [_row_to_metric(row) for row in res.data or []]

    def clear(self, site_id: Optional[int] = None) -> int:
        query = self.client.table(METRICS_TABLE).delete()
        if site_id is not None:
            query = query.eq("site_id", site_id)
        else:
            # PostgREST refuses an unfiltered DELETE
            query = query.gte("id", 0)
        res = query.execute()
        return len(res.data or [])
