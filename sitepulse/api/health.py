"""
Health check and status endpoints
"""
from fastapi import APIRouter, Depends
from datetime import datetime
from sitepulse.api.deps import get_search_console_connector
from sitepulse.config import get_settings
from sitepulse.connectors.search_console_connector import SearchConsoleConnector
from sitepulse import __version__

settings = get_settings()

router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": __version__
    }


@router.get("/status")
async def get_status(connector: SearchConsoleConnector = Depends(get_search_console_connector)):
    """Get system status"""
    return {
        "app_name": settings.app_name,
        "version": __version__,
        "environment": settings.environment,
        "storage_backend": settings.metrics_store_backend,
        "search_console": connector.get_status(),
        "sync_thresholds": {
            "retention_days": settings.gsc_retention_days,
            "recent_window_days": settings.gsc_recent_window_days,
            "stale_after_hours": settings.gsc_stale_after_hours,
            "stale_window_days": settings.gsc_stale_window_days,
            "incremental_buffer_days": settings.gsc_incremental_buffer_days,
        },
        "timestamp": datetime.utcnow().isoformat()
    }
