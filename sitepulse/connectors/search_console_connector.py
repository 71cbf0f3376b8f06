"""
Google Search Console data connector
Fetches daily performance totals and breakdowns for a site property
"""
from typing import Any, Dict, List, Optional
from datetime import date
import json
import os
from google.auth.exceptions import RefreshError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from sitepulse.connectors.base_connector import MetricsProvider
from sitepulse.config import Settings, get_settings
from sitepulse.exceptions import (
    AuthError,
    NotConfiguredError,
    QuotaOrDisabledAPIError,
    SearchConsoleError,
    SearchConsolePermissionError,
)
from sitepulse.utils.credentials import service_account_info
from sitepulse.utils.helpers import window_bounds
from sitepulse.utils.logger import log
from sitepulse.utils.url_parsing import normalize_domain, resolve_search_console_site_url

SCOPES = ['https://www.googleapis.com/auth/webmasters.readonly']
ROW_LIMIT = 25000

# Error reasons Google returns when the API is off or the project is out of quota
_DISABLED_OR_QUOTA_REASONS = {
    "accessNotConfigured",
    "SERVICE_DISABLED",
    "API_DISABLED",
    "quotaExceeded",
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "dailyLimitExceeded",
    "RATE_LIMIT_EXCEEDED",
    "RESOURCE_EXHAUSTED",
}


def _error_reasons(error: HttpError) -> set:
    """Collect every reason/status string from a Google API error body"""
    reasons = set()
    try:
        content = error.content.decode("utf-8") if isinstance(error.content, bytes) else error.content
        body = json.loads(content or "{}").get("error", {})
    except (ValueError, AttributeError):
        return reasons

    if body.get("status"):
        reasons.add(body["status"])
    for item in body.get("errors", []) or []:
        if item.get("reason"):
            reasons.add(item["reason"])
    for item in body.get("details", []) or []:
        if isinstance(item, dict) and item.get("reason"):
            reasons.add(item["reason"])
    return reasons


def classify_google_error(error: Exception) -> SearchConsoleError:
    """Translate a google-api-python-client / google-auth failure into a typed error"""
    if isinstance(error, SearchConsoleError):
        return error
    if isinstance(error, RefreshError):
        return AuthError(f"Google credentials could not be refreshed: {error}")
    if isinstance(error, HttpError):
        status = error.resp.status if error.resp is not None else None
        reasons = _error_reasons(error)
        message = str(error)
        if status == 401:
            return AuthError(message)
        if status == 429 or reasons & _DISABLED_OR_QUOTA_REASONS:
            return QuotaOrDisabledAPIError(message)
        if status == 403:
            return SearchConsolePermissionError(message)
        return SearchConsoleError(message)
    return SearchConsoleError(str(error))


class SearchConsoleConnector(MetricsProvider):
    """Connector for Google Search Console API"""

    def __init__(self, settings: Optional[Settings] = None, service=None):
        super().__init__("Google Search Console")
        self.settings = settings or get_settings()
        self.credentials_path = self.settings.gsc_credentials_path
        self.service = service

    def _load_credentials(self):
        info = service_account_info(self.settings)
        if info:
            return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)
        if self.credentials_path and os.path.exists(self.credentials_path):
            return service_account.Credentials.from_service_account_file(
                self.credentials_path,
                scopes=SCOPES
            )
        raise AuthError(
            "Search Console credentials are not configured. Set GOOGLE_SERVICE_ACCOUNT_EMAIL "
            "and GOOGLE_PRIVATE_KEY or provide GSC_CREDENTIALS_PATH."
        )

    async def connect(self) -> bool:
        """Establish connection to Search Console"""
        try:
            credentials = self._load_credentials()
            self.service = build('searchconsole', 'v1', credentials=credentials, cache_discovery=False)
            log.info("Connected to Google Search Console")
            return True
        except AuthError:
            raise
        except Exception as e:
            log.error(f"Failed to connect to Search Console: {str(e)}")
            raise classify_google_error(e) from e

    async def _ensure_service(self):
        if not self.service:
            await self.connect()

    async def validate_connection(self) -> bool:
        """Validate Search Console connection"""
        try:
            await self._ensure_service()
            self.service.sites().list().execute()
            return True
        except Exception as e:
            log.error(f"Search Console connection validation failed: {str(e)}")
            return False

    @staticmethod
    def resolve_site_url(site_identifier: Optional[str], fallback_domain: Optional[str] = None) -> str:
        """
        API siteUrl for a site

        Falls back to a domain property for the site's own domain when no
        Search Console URL is stored.
        """
        site_url = resolve_search_console_site_url(site_identifier)
        if site_url:
            return site_url
        if site_identifier:
            log.warning(f"Could not extract a Search Console property from '{site_identifier}'")
        domain = normalize_domain(fallback_domain or "")
        if domain:
            return f"sc-domain:{domain}"
        raise NotConfiguredError("No Search Console property and no domain to fall back to")

    async def list_sites(self) -> List[Dict[str, str]]:
        """Properties visible to the service account"""
        await self._ensure_service()
        try:
            response = self.service.sites().list().execute()
            self.record_fetch(True)
        except Exception as e:
            self.record_fetch(False)
            log.error(f"Error listing Search Console sites: {str(e)}")
            raise classify_google_error(e) from e
        return [
            {"siteUrl": entry.get("siteUrl"), "permissionLevel": entry.get("permissionLevel")}
            for entry in response.get("siteEntry", []) or []
        ]

    async def get_performance_data(
        self,
        site_url: str,
        start_date: date,
        end_date: date,
        dimensions: Optional[List[str]] = None,
        row_limit: int = ROW_LIMIT
    ) -> Dict[str, Any]:
        """Raw searchanalytics.query response for a date range"""
        await self._ensure_service()

        request = {
            'startDate': start_date.strftime('%Y-%m-%d'),
            'endDate': end_date.strftime('%Y-%m-%d'),
            'rowLimit': row_limit,
        }
        if dimensions:
            request['dimensions'] = dimensions

        try:
            response = self.service.searchanalytics().query(
                siteUrl=site_url,
                body=request
            ).execute()
            self.record_fetch(True)
            return response
        except Exception as e:
            self.record_fetch(False)
            log.error(f"Error fetching Search Console performance data for {site_url}: {str(e)}")
            raise classify_google_error(e) from e

    async def get_aggregated_data(
        self,
        site_identifier: Optional[str],
        days: int,
        fallback_domain: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Daily totals for the `days` calendar days ending today"""
        site_url = self.resolve_site_url(site_identifier, fallback_domain)
        start_date, end_date = window_bounds(days)

        response = await self.get_performance_data(site_url, start_date, end_date, ['date'])
        rows = response.get('rows', []) or []

        log.info(f"Fetched {len(rows)} daily rows from Search Console for {site_url} ({start_date} to {end_date})")
        return [
            {
                "date": row['keys'][0],
                "clicks": int(row.get('clicks', 0)),
                "impressions": int(row.get('impressions', 0)),
                "ctr": round(float(row.get('ctr', 0)), 6),  # Decimal 0-1
                "position": round(float(row.get('position', 0)), 2),
            }
            for row in rows
        ]

    async def get_dimension_data(
        self,
        site_identifier: Optional[str],
        dimension: str,
        days: int = 30,
        limit: Optional[int] = None,
        fallback_domain: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Totals grouped by one dimension (query, page, country, device)"""
        site_url = self.resolve_site_url(site_identifier, fallback_domain)
        start_date, end_date = window_bounds(days)

        response = await self.get_performance_data(site_url, start_date, end_date, [dimension])
        rows = response.get('rows', []) or []
        if limit is not None:
            rows = rows[:limit]

        return [
            {
                dimension: row['keys'][0],
                "clicks": int(row.get('clicks', 0)),
                "impressions": int(row.get('impressions', 0)),
                "ctr": round(float(row.get('ctr', 0)), 6),
                "position": round(float(row.get('position', 0)), 2),
            }
            for row in rows
        ]

    async def get_query_data(self, site_identifier: Optional[str], days: int = 30, limit: int = 100,
                             fallback_domain: Optional[str] = None) -> List[Dict[str, Any]]:
        """Top search queries"""
        return await self.get_dimension_data(site_identifier, 'query', days, limit, fallback_domain)

    async def get_page_data(self, site_identifier: Optional[str], days: int = 30, limit: int = 100,
                            fallback_domain: Optional[str] = None) -> List[Dict[str, Any]]:
        """Top landing pages"""
        return await self.get_dimension_data(site_identifier, 'page', days, limit, fallback_domain)

    async def get_country_data(self, site_identifier: Optional[str], days: int = 30,
                               fallback_domain: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.get_dimension_data(site_identifier, 'country', days, None, fallback_domain)

    async def get_device_data(self, site_identifier: Optional[str], days: int = 30,
                              fallback_domain: Optional[str] = None) -> List[Dict[str, Any]]:
        return await self.get_dimension_data(site_identifier, 'device', days, None, fallback_domain)
