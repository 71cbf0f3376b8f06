"""
Search Console Sync Reconciler

Keeps each site's stored daily Search Console totals current:
- decides whether the cached series is stale (should_sync)
- picks the smallest date window worth re-fetching
- merges fetched rows without duplicating stored dates
- prunes rows that fall out of the retention window

Flow per call:
    CheckCache -> Fresh: done
               -> Stale: DetermineWindow -> Fetch -> Diff -> Write -> Prune

No retries and no cross-request locking. Two concurrent syncs for the same
site can both fetch and upsert; writes are keyed by (site_id, date) so the
stored result converges.
"""
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from sitepulse.config import Settings, get_settings
from sitepulse.connectors.base_connector import MetricsProvider
from sitepulse.exceptions import SiteNotFoundError
from sitepulse.stores.base import DataStore, MetricRecord, SiteRecord
from sitepulse.utils.helpers import iter_days, parse_iso_date, window_bounds
from sitepulse.utils.logger import log


@dataclass
class SyncWindow:
    """Date range to re-fetch, both ends inclusive"""
    start_date: date
    end_date: date
    is_incremental: bool

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


@dataclass
class SyncDecision:
    needs_sync: bool
    missing_days: Optional[int] = None


@dataclass
class ReconcileResult:
    records_written: int
    incremental: bool
    window: SyncWindow
    rows_fetched: int = 0


@dataclass
class SyncOutcome:
    """What the sync endpoint reports back"""
    records_written: int
    incremental: bool
    cached: bool
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": True,
            "message": self.message,
            "count": self.records_written,
            "incremental": self.incremental,
            "cached": self.cached,
        }


class SyncReconciler:
    """Incremental Search Console sync for one site at a time"""

    def __init__(
        self,
        store: DataStore,
        provider: MetricsProvider,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.store = store
        self.provider = provider
        self.settings = settings or get_settings()
        self.clock = clock

        self.retention_days = self.settings.gsc_retention_days
        self.recent_window_days = self.settings.gsc_recent_window_days
        self.stale_after = timedelta(hours=self.settings.gsc_stale_after_hours)
        self.stale_window_days = self.settings.gsc_stale_window_days
        self.buffer_days = self.settings.gsc_incremental_buffer_days

    def today(self) -> date:
        return self.clock().date()

    def _count_missing(self, existing: Set[date], days: int, today: date) -> int:
        start, end = window_bounds(days, today)
        return sum(1 for day in iter_days(start, end) if day not in existing)

    def _get_site(self, site_id: int) -> SiteRecord:
        site = self.store.get_site(site_id)
        if not site:
            raise SiteNotFoundError(site_id)
        return site

    def should_sync(self, site_id: int) -> SyncDecision:
        """
        Decide whether the site's cached series needs a refresh

        - nothing stored in the retention window -> full sync
        - any gap in the last few days -> incremental sync for the gap
        - newest row written too long ago -> incremental sync over the stale window
        - otherwise fresh

        Read failures fall back to a full sync rather than serving stale data.
        """
        today = self.today()
        try:
            retention_start, _ = window_bounds(self.retention_days, today)
            existing = self.store.get_existing_dates(site_id, retention_start, today)

            if not existing:
                log.info(f"Site {site_id}: no cached Search Console data, full sync needed")
                return SyncDecision(needs_sync=True, missing_days=self.retention_days)

            recent_missing = self._count_missing(existing, self.recent_window_days, today)
            if recent_missing > 0:
                log.info(f"Site {site_id}: {recent_missing} of the last {self.recent_window_days} days missing")
                return SyncDecision(needs_sync=True, missing_days=recent_missing)

            latest = self.store.get_recent(site_id, 1)
            created_at = latest[0].created_at if latest else None
            if created_at is None or self.clock() - created_at > self.stale_after:
                missing = self._count_missing(existing, self.stale_window_days, today)
                log.info(
                    f"Site {site_id}: cache older than {self.stale_after}, "
                    f"{missing} missing days in the last {self.stale_window_days}"
                )
                return SyncDecision(needs_sync=True, missing_days=min(missing, self.stale_window_days))

            return SyncDecision(needs_sync=False)

        except Exception as e:
            log.warning(f"Site {site_id}: could not read cached Search Console data, forcing full sync: {e}")
            return SyncDecision(needs_sync=True, missing_days=self.retention_days)

    def determine_window(self, missing_days: Optional[int] = None) -> SyncWindow:
        """Incremental window (gap + buffer) when the gap is small, else the full retention window"""
        today = self.today()
        if missing_days is not None and missing_days < self.retention_days:
            days = min(max(missing_days, 0) + self.buffer_days, self.retention_days)
            start, end = window_bounds(days, today)
            return SyncWindow(start, end, is_incremental=True)

        start, end = window_bounds(self.retention_days, today)
        return SyncWindow(start, end, is_incremental=False)

    def _to_records(self, site_id: int, rows: Iterable[Dict[str, Any]], window: SyncWindow) -> List[MetricRecord]:
        records = []
        for row in rows:
            try:
                record = MetricRecord(
                    site_id=site_id,
                    date=parse_iso_date(row["date"]),
                    clicks=max(int(row.get("clicks") or 0), 0),
                    impressions=max(int(row.get("impressions") or 0), 0),
                    ctr=float(row.get("ctr") or 0),
                    position=float(row.get("position") or 0),
                )
            except (KeyError, TypeError, ValueError):
                log.warning(f"Site {site_id}: skipping malformed Search Console row: {row}")
                continue
            if window.contains(record.date):
                records.append(record)
        return records

    def prune(self, site_id: int) -> int:
        """Drop rows older than the retention window. Failures are logged only."""
        cutoff = self.today() - timedelta(days=self.retention_days)
        try:
            deleted = self.store.delete_older_than(site_id, cutoff)
            if deleted:
                log.info(f"Site {site_id}: pruned {deleted} Search Console rows older than {cutoff}")
            return deleted
        except Exception as e:
            log.error(f"Site {site_id}: failed to prune Search Console rows older than {cutoff}: {e}")
            return 0

    async def reconcile(self, site_id: int, missing_days: Optional[int] = None) -> ReconcileResult:
        """
        Fetch the sync window and merge it into the store

        Incremental syncs only fill dates the store does not have; full syncs
        overwrite every fetched date. Fetch and write errors propagate.
        """
        site = self._get_site(site_id)
        window = self.determine_window(missing_days)
        mode = "incremental" if window.is_incremental else "full"
        log.info(f"Site {site_id}: {mode} Search Console sync {window.start_date} to {window.end_date}")

        rows = await self.provider.get_aggregated_data(site.search_console_url, window.days, site.domain)

        written = 0
        try:
            records = self._to_records(site_id, rows or [], window)
            if records and window.is_incremental:
                existing = self.store.get_existing_dates(site_id, window.start_date, window.end_date)
                records = [r for r in records if r.date not in existing]
            if records:
                written = self.store.bulk_upsert(records)
        finally:
            self.prune(site_id)

        log.info(f"Site {site_id}: {mode} sync fetched {len(rows or [])} rows, wrote {written}")
        return ReconcileResult(
            records_written=written,
            incremental=window.is_incremental,
            window=window,
            rows_fetched=len(rows or []),
        )

    async def sync_site(self, site_id: int, force: bool = False) -> SyncOutcome:
        """Check the cache and reconcile if it is stale. `force` always runs a full sync."""
        self._get_site(site_id)

        decision = SyncDecision(needs_sync=True) if force else self.should_sync(site_id)
        if not decision.needs_sync:
            return SyncOutcome(
                records_written=0,
                incremental=False,
                cached=True,
                message="Search Console data is up to date",
            )

        result = await self.reconcile(site_id, decision.missing_days)
        if result.rows_fetched == 0:
            message = "Search Console returned no data for this period yet"
        elif result.incremental:
            message = f"Incremental sync complete: {result.records_written} new days saved"
        else:
            message = f"Full sync complete: {result.records_written} days saved"

        return SyncOutcome(
            records_written=result.records_written,
            incremental=result.incremental,
            cached=False,
            message=message,
        )
