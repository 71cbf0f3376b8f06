"""
In-memory storage backend for local development and tests
"""
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple

from sitepulse.stores.base import DataStore, MetricRecord, SiteRecord, SITE_FIELDS, dedupe_records


class InMemoryStore(DataStore):
    """Process-local store. Contents are lost on restart."""

    backend_name = "memory"

    def __init__(self, clock: Callable[[], datetime] = datetime.utcnow):
        self.clock = clock
        self._sites: Dict[int, SiteRecord] = {}
        self._metrics: Dict[Tuple[int, date], MetricRecord] = {}
        self._next_site_id = 1

    def list_sites(self) -> List[SiteRecord]:
        return [replace(s) for _, s in sorted(self._sites.items())]

    def get_site(self, site_id: int) -> Optional[SiteRecord]:
        site = self._sites.get(site_id)
        return replace(site) if site else None

    def create_site(self, **fields) -> SiteRecord:
        now = self.clock()
        site = SiteRecord(
            id=self._next_site_id,
            created_at=now,
            updated_at=now,
            **{k: v for k, v in fields.items() if k in SITE_FIELDS},
        )
        self._sites[site.id] = site
        self._next_site_id += 1
        return replace(site)

    def update_site(self, site_id: int, **fields) -> Optional[SiteRecord]:
        site = self._sites.get(site_id)
        if not site:
            return None
        updated = replace(
            site,
            updated_at=self.clock(),
            **{k: v for k, v in fields.items() if k in SITE_FIELDS},
        )
        self._sites[site_id] = updated
        return replace(updated)

    def delete_site(self, site_id: int) -> bool:
        if site_id not in self._sites:
            return False
        del self._sites[site_id]
        self.clear(site_id)
        return True

    def get_existing_dates(self, site_id: int, start: date, end: date) -> Set[date]:
        return {
            d for (sid, d) in self._metrics
            if sid == site_id and start <= d <= end
        }

    def bulk_upsert(self, records: Iterable[MetricRecord]) -> int:
        records = dedupe_records(records)
        now = self.clock()
        for record in records:
            self._metrics[(record.site_id, record.date)] = replace(record, created_at=now)
        return len(records)

    def delete_older_than(self, site_id: int, cutoff: date) -> int:
        stale = [key for key in self._metrics if key[0] == site_id and key[1] < cutoff]
        for key in stale:
            del self._metrics[key]
        return len(stale)

    def get_recent(self, site_id: int, limit: int) -> List[MetricRecord]:
        rows = [r for r in self._metrics.values() if r.site_id == site_id]
        rows.sort(key=lambda r: r.date, reverse=True)
        return [replace(r) for r in rows[:limit]]

    def get_range(self, site_id: int, start: date, end: date, limit: int = 2000) -> List[MetricRecord]:
        rows = [
            r for r in self._metrics.values()
            if r.site_id == site_id and start <= r.date <= end
        ]
        rows.sort(key=lambda r: r.date)
        return [replace(r) for r in rows[:limit]]

    def clear(self, site_id: Optional[int] = None) -> int:
        keys = [k for k in self._metrics if site_id is None or k[0] == site_id]
        for key in keys:
            del self._metrics[key]
        return len(keys)
