"""
Storage interfaces

Every backend (SQLAlchemy, Supabase, in-memory) implements both SiteStore and
MetricsStore so a single configuration switch selects where sites and their
Search Console metrics live.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, asdict
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Set


@dataclass
class MetricRecord:
    """One day of Search Console totals for a site"""
    site_id: int
    date: date
    clicks: int = 0
    impressions: int = 0
    ctr: float = 0.0
    position: float = 0.0
    created_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "siteId": self.site_id,
            "date": self.date.isoformat(),
            "clicks": self.clicks,
            "impressions": self.impressions,
            "ctr": self.ctr,
            "position": self.position,
        }


@dataclass
class SiteRecord:
    """A tracked site"""
    id: int
    name: str
    domain: str
    category: Optional[str] = None
    search_console_url: Optional[str] = None
    owner_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("created_at", "updated_at"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data


# Fields a caller may set on create/update
SITE_FIELDS = ("name", "domain", "category", "search_console_url", "owner_id")


class SiteStore(ABC):
    """Site CRUD"""

    @abstractmethod
    def list_sites(self) -> List[SiteRecord]:
        pass

    @abstractmethod
    def get_site(self, site_id: int) -> Optional[SiteRecord]:
        pass

    @abstractmethod
    def create_site(self, **fields) -> SiteRecord:
        pass

    @abstractmethod
    def update_site(self, site_id: int, **fields) -> Optional[SiteRecord]:
        """Update the given fields. Returns None if the site does not exist."""
        pass

    @abstractmethod
    def delete_site(self, site_id: int) -> bool:
        """Delete a site and its metrics. Returns False if it did not exist."""
        pass


class MetricsStore(ABC):
    """Per-site, per-day Search Console metrics"""

    @abstractmethod
    def get_existing_dates(self, site_id: int, start: date, end: date) -> Set[date]:
        """Dates with a stored record in [start, end], both inclusive"""
        pass

    @abstractmethod
    def bulk_upsert(self, records: Iterable[MetricRecord]) -> int:
        """Insert or overwrite records keyed by (site_id, date).

        created_at is set to the current time on every written row.
        Returns the number of rows written.
        """
        pass

    @abstractmethod
    def delete_older_than(self, site_id: int, cutoff: date) -> int:
        """Delete records with date strictly before cutoff"""
        pass

    @abstractmethod
    def get_recent(self, site_id: int, limit: int) -> List[MetricRecord]:
        """Most recent records, newest date first"""
        pass

    @abstractmethod
    def get_range(self, site_id: int, start: date, end: date, limit: int = 2000) -> List[MetricRecord]:
        """Records in [start, end], oldest date first"""
        pass

    @abstractmethod
    def clear(self, site_id: Optional[int] = None) -> int:
        """Delete all records for one site, or for every site when site_id is None"""
        pass


class DataStore(SiteStore, MetricsStore, ABC):
    """A backend providing both sites and metrics"""

    backend_name = "base"


def dedupe_records(records: Iterable[MetricRecord]) -> List[MetricRecord]:
    """Keep the last record per (site_id, date).

    A single INSERT ... ON CONFLICT statement cannot touch the same key twice.
    """
    by_key: Dict[tuple, MetricRecord] = {}
    for record in records:
        by_key[(record.site_id, record.date)] = record
    return list(by_key.values())
