"""
Search Console read-side service

Serves stored daily metrics to the dashboard and live breakdowns straight
from the provider.
"""
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sitepulse.connectors.search_console_connector import SearchConsoleConnector
from sitepulse.exceptions import SiteNotFoundError
from sitepulse.stores.base import DataStore, SiteRecord
from sitepulse.utils.helpers import utc_today
from sitepulse.utils.logger import log

MAX_PERIOD_DAYS = 365
# Fraction of the requested period the stored data should span before we warn
MIN_COVERAGE = 0.7

BREAKDOWN_DIMENSIONS = ("query", "page", "country", "device")


class SearchConsoleService:
    """Stored and live Search Console data for sites"""

    def __init__(self, store: DataStore, connector: Optional[SearchConsoleConnector] = None):
        self.store = store
        self.connector = connector

    def _get_site(self, site_id: int) -> SiteRecord:
        site = self.store.get_site(site_id)
        if not site:
            raise SiteNotFoundError(site_id)
        return site

    def get_recent(self, site_id: int, limit: int = 100) -> List[Dict[str, Any]]:
        """Most recent stored days, newest first"""
        return [r.to_dict() for r in self.store.get_recent(site_id, limit)]

    def get_daily_series(self, site_id: int, days: int = 30, today: Optional[date] = None) -> List[Dict[str, Any]]:
        """
        Stored daily totals for the last `days` days, oldest first

        Args:
            site_id: Site to read
            days: Period length, 1-365
            today: Override for the period end (defaults to UTC today)

        Raises:
            ValueError: if days is out of range
        """
        if days < 1 or days > MAX_PERIOD_DAYS:
            raise ValueError(f"Invalid period: {days} must be a number between 1 and {MAX_PERIOD_DAYS}")

        end_date = today or utc_today()
        start_date = end_date - timedelta(days=days)
        limit = max(days * 3, 1000)

        records = self.store.get_range(site_id, start_date, end_date, limit=limit)
        log.info(f"Loaded {len(records)} daily Search Console rows for site {site_id} ({start_date} to {end_date})")

        if records:
            span_days = (records[-1].date - records[0].date).days
            if span_days < days * MIN_COVERAGE:
                log.warning(
                    f"Site {site_id} has only {span_days} days of data, but {days} days were requested. "
                    f"Data coverage: {round(span_days / days * 100)}%"
                )
        else:
            log.info(f"No Search Console data in database for site {site_id}. Sync may be needed.")

        return [r.to_dict() for r in records]

    def clear(self, site_id: Optional[int] = None) -> int:
        """Delete stored data for one site, or all sites"""
        deleted = self.store.clear(site_id)
        scope = f"site {site_id}" if site_id is not None else "all sites"
        log.info(f"Cleared {deleted} Search Console rows for {scope}")
        return deleted

    async def get_breakdown(self, site_id: int, dimension: str = "query", days: int = 30,
                            limit: int = 100) -> List[Dict[str, Any]]:
        """Live top-N breakdown from the provider (not stored)"""
        if dimension not in BREAKDOWN_DIMENSIONS:
            raise ValueError(f"Unsupported dimension '{dimension}'. Use one of: {', '.join(BREAKDOWN_DIMENSIONS)}")
        if self.connector is None:
            raise RuntimeError("Search Console connector is not available")

        site = self._get_site(site_id)
        if dimension == "query":
            return await self.connector.get_query_data(
                site.search_console_url, days=days, limit=limit, fallback_domain=site.domain
            )
        if dimension == "page":
            return await self.connector.get_page_data(
                site.search_console_url, days=days, limit=limit, fallback_domain=site.domain
            )
        # Few distinct values; returned in full
        if dimension == "country":
            return await self.connector.get_country_data(
                site.search_console_url, days=days, fallback_domain=site.domain
            )
        return await self.connector.get_device_data(
            site.search_console_url, days=days, fallback_domain=site.domain
        )
