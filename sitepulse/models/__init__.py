"""
Database models for SitePulse
"""
from sitepulse.models.base import Base, engine, SessionLocal, init_db
from sitepulse.models.site import Site
from sitepulse.models.search_console_data import SearchConsoleDaily

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "init_db",
    "Site",
    "SearchConsoleDaily",
]
