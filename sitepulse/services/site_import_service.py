"""
Site Import Service

Pulls every property visible to the Search Console service account into
the site list and seeds each with recent daily metrics.
"""
from typing import Any, Dict, Optional

from sitepulse.config import Settings, get_settings
from sitepulse.connectors.search_console_connector import SearchConsoleConnector
from sitepulse.stores.base import DataStore, MetricRecord, SiteRecord
from sitepulse.utils.helpers import parse_iso_date, window_bounds
from sitepulse.utils.logger import log
from sitepulse.utils.url_parsing import domains_match, normalize_domain, site_name_from_domain


class SiteImportService:
    """Match Search Console properties to sites, create missing ones, load their data"""

    def __init__(self, store: DataStore, connector: SearchConsoleConnector, settings: Optional[Settings] = None):
        self.store = store
        self.connector = connector
        self.settings = settings or get_settings()

    def _find_site(self, domain: str) -> Optional[SiteRecord]:
        for site in self.store.list_sites():
            if domains_match(site.domain, domain):
                return site
        return None

    async def _load_recent_data(self, site: SiteRecord, site_url: str) -> int:
        start_date, end_date = window_bounds(self.settings.gsc_import_days)
        response = await self.connector.get_performance_data(site_url, start_date, end_date, ['date'])
        rows = response.get('rows', []) or []
        if not rows:
            return 0

        records = [
            MetricRecord(
                site_id=site.id,
                date=parse_iso_date(row['keys'][0]),
                clicks=int(row.get('clicks', 0)),
                impressions=int(row.get('impressions', 0)),
                ctr=float(row.get('ctr', 0)),
                position=float(row.get('position', 0)),
            )
            for row in rows
        ]
        return self.store.bulk_upsert(records)

    async def import_search_console_sites(self) -> Dict[str, Any]:
        """
        Sync the site list with the Search Console account

        Returns:
            Dict with sites_loaded, sites_updated, data_loaded, total_google_sites, message
        """
        google_sites = await self.connector.list_sites()

        if not google_sites:
            return {
                "success": True,
                "message": "No sites found in Google Search Console",
                "sites_loaded": 0,
                "sites_updated": 0,
                "data_loaded": 0,
                "total_google_sites": 0,
            }

        sites_loaded = 0
        sites_updated = 0
        data_loaded = 0

        for google_site in google_sites:
            site_url = google_site.get("siteUrl")
            if not site_url:
                continue
            domain = normalize_domain(site_url)

            site = self._find_site(domain)
            if site:
                if site.search_console_url != site_url:
                    site = self.store.update_site(site.id, search_console_url=site_url)
                    sites_updated += 1
            else:
                site = self.store.create_site(
                    name=site_name_from_domain(domain),
                    domain=domain,
                    search_console_url=site_url,
                )
                sites_loaded += 1

            try:
                data_loaded += await self._load_recent_data(site, site_url)
            except Exception as e:
                # Keep going: one inaccessible property should not block the rest
                log.warning(f"Failed to load Search Console data for {site_url}: {e}")

        message = (
            f"Loaded {sites_loaded} new sites, updated {sites_updated} existing, "
            f"loaded {data_loaded} data rows"
        )
        log.info(message)
        return {
            "success": True,
            "message": message,
            "sites_loaded": sites_loaded,
            "sites_updated": sites_updated,
            "data_loaded": data_loaded,
            "total_google_sites": len(google_sites),
        }
