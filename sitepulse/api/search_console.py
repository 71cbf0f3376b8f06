"""
Search Console API Endpoints

Sync, read and clear per-site daily Search Console metrics.
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional

from sitepulse.api.deps import get_search_console_connector, get_store
from sitepulse.connectors.search_console_connector import SearchConsoleConnector
from sitepulse.exceptions import SearchConsoleError, SiteNotFoundError, describe_sync_error
from sitepulse.services.search_console_service import SearchConsoleService
from sitepulse.services.site_import_service import SiteImportService
from sitepulse.services.sync_reconciler import SyncReconciler
from sitepulse.stores.base import DataStore
from sitepulse.utils.logger import log

router = APIRouter(tags=["search-console"])


def _require_site(store: DataStore, site_id: int):
    if not store.get_site(site_id):
        raise HTTPException(status_code=404, detail="Site not found")


@router.post("/sites/{site_id}/metrics/sync")
async def sync_site_metrics(
    site_id: int,
    force: bool = Query(False, description="Skip the cache check and run a full sync"),
    store: DataStore = Depends(get_store),
    connector: SearchConsoleConnector = Depends(get_search_console_connector),
):
    """
    Bring a site's stored Search Console data up to date

    Returns cached=true without calling Google when the last few days are
    present and were synced recently.
    """
    reconciler = SyncReconciler(store, connector)

    try:
        outcome = await reconciler.sync_site(site_id, force=force)
        return outcome.to_dict()

    except SiteNotFoundError:
        raise HTTPException(status_code=404, detail="Site not found")
    except Exception as e:
        log.error(f"Search Console sync failed for site {site_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=describe_sync_error(e))


@router.get("/sites/{site_id}/metrics")
def get_site_metrics(
    site_id: int,
    limit: int = Query(100, ge=1, le=1000, description="Maximum days to return"),
    store: DataStore = Depends(get_store),
):
    """Most recent stored days, newest first"""
    service = SearchConsoleService(store)

    try:
        data = service.get_recent(site_id, limit=limit)
        return {"success": True, "data": data, "count": len(data)}

    except Exception as e:
        log.error(f"Error loading Search Console data for site {site_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/sites/{site_id}/metrics/daily")
def get_site_daily_metrics(
    site_id: int,
    days: int = Query(30, description="Period length in days (1-365)"),
    store: DataStore = Depends(get_store),
):
    """Stored daily series for the requested period, oldest first"""
    service = SearchConsoleService(store)

    try:
        data = service.get_daily_series(site_id, days=days)
        return {"success": True, "data": data, "count": len(data), "cached": False}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        log.error(f"Error loading daily Search Console data for site {site_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/sites/{site_id}/metrics/queries")
async def get_site_breakdown(
    site_id: int,
    dimension: str = Query("query", description="query, page, country or device"),
    days: int = Query(30, ge=1, le=480, description="Number of days to analyze"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum results to return"),
    store: DataStore = Depends(get_store),
    connector: SearchConsoleConnector = Depends(get_search_console_connector),
):
    """Live breakdown from Search Console (not stored)"""
    _require_site(store, site_id)
    service = SearchConsoleService(store, connector)

    try:
        data = await service.get_breakdown(site_id, dimension=dimension, days=days, limit=limit)
        return {"success": True, "data": data, "count": len(data)}

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except SearchConsoleError as e:
        log.error(f"Search Console breakdown failed for site {site_id}: {str(e)}")
        raise HTTPException(status_code=500, detail=describe_sync_error(e))


@router.post("/metrics/clear")
def clear_metrics(
    site_id: Optional[int] = Query(None, description="Site to clear; omit to clear all sites"),
    store: DataStore = Depends(get_store),
):
    """Delete stored Search Console data"""
    service = SearchConsoleService(store)

    try:
        deleted = service.clear(site_id)
        message = (
            f"Search Console data for site {site_id} cleared"
            if site_id is not None
            else "All Search Console data cleared"
        )
        return {"success": True, "message": message, "deleted": deleted}

    except Exception as e:
        log.error(f"Error clearing Search Console data: {str(e)}")
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/sites/import-search-console")
async def import_search_console_sites(
    store: DataStore = Depends(get_store),
    connector: SearchConsoleConnector = Depends(get_search_console_connector),
):
    """Create or link a site for every Search Console property and load 30 days of data"""
    service = SiteImportService(store, connector)

    try:
        return await service.import_search_console_sites()

    except Exception as e:
        log.error(f"Search Console site import failed: {str(e)}")
        raise HTTPException(status_code=500, detail=describe_sync_error(e))
