"""
Error hierarchy for SitePulse

Provider adapters raise these typed errors; the API layer maps them to
user-facing messages by type.
"""


class SitePulseError(Exception):
    """Base class for all application errors"""


class SiteNotFoundError(SitePulseError):
    """Site id does not reference an existing site"""

    def __init__(self, site_id: int):
        super().__init__(f"Site {site_id} not found")
        self.site_id = site_id


class SearchConsoleError(SitePulseError):
    """Search Console request failed"""


class AuthError(SearchConsoleError):
    """External credentials are missing, expired or invalid"""


class SearchConsolePermissionError(SearchConsoleError):
    """Credentials are valid but have no access to the property"""


class QuotaOrDisabledAPIError(SearchConsoleError):
    """Search Console API is disabled for the project or quota is exhausted"""


class NotConfiguredError(SearchConsoleError):
    """Site has neither a Search Console property nor a fallback domain"""


_SYNC_ERROR_MESSAGES = (
    (AuthError, "Google authorization has expired or is invalid. Please re-authenticate the Google account."),
    (SearchConsolePermissionError, "Access denied. Verify that the service account has been granted access to this property in Google Search Console."),
    (QuotaOrDisabledAPIError, "Google Search Console API is disabled or over quota. Enable the API in Google Cloud Console and try again."),
    (NotConfiguredError, "Search Console is not configured for this site. Set the Search Console URL manually."),
)


def describe_sync_error(error: Exception) -> str:
    """Map an exception to the message shown to the user"""
    for error_type, message in _SYNC_ERROR_MESSAGES:
        if isinstance(error, error_type):
            return message
    detail = str(error)
    if detail:
        return f"Search Console sync failed: {detail}"
    return "Search Console sync failed"
