"""Data Connectors for SitePulse"""

from sitepulse.connectors.base_connector import BaseConnector, MetricsProvider
from sitepulse.connectors.search_console_connector import SearchConsoleConnector

__all__ = [
    "BaseConnector",
    "MetricsProvider",
    "SearchConsoleConnector"
]
