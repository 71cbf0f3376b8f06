"""
Shared FastAPI dependencies
"""
from functools import lru_cache

from sitepulse.connectors.search_console_connector import SearchConsoleConnector
from sitepulse.stores import get_store  # noqa: F401  (re-exported for Depends)


@lru_cache()
def get_search_console_connector() -> SearchConsoleConnector:
    """One connector per process; it builds the Google client lazily"""
    return SearchConsoleConnector()
