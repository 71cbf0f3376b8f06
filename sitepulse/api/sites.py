"""
Site management endpoints
"""
from fastapi import APIRouter, Depends, HTTPException
from typing import Optional
from pydantic import BaseModel, Field

from sitepulse.api.deps import get_store
from sitepulse.stores.base import DataStore
from sitepulse.utils.logger import log


class SiteCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    domain: str = Field(..., min_length=1)
    category: Optional[str] = None
    search_console_url: Optional[str] = None
    owner_id: Optional[int] = None


class SiteUpdateRequest(BaseModel):
    name: Optional[str] = None
    domain: Optional[str] = None
    category: Optional[str] = None
    search_console_url: Optional[str] = None
    owner_id: Optional[int] = None


router = APIRouter(prefix="/sites", tags=["sites"])


@router.get("")
def list_sites(store: DataStore = Depends(get_store)):
    """All tracked sites"""
    sites = store.list_sites()
    return {"success": True, "data": [s.to_dict() for s in sites], "count": len(sites)}


@router.post("", status_code=201)
def create_site(request: SiteCreateRequest, store: DataStore = Depends(get_store)):
    site = store.create_site(**request.model_dump())
    log.info(f"Created site {site.id} ({site.domain})")
    return {"success": True, "data": site.to_dict()}


@router.get("/{site_id}")
def get_site(site_id: int, store: DataStore = Depends(get_store)):
    site = store.get_site(site_id)
    if not site:
        raise HTTPException(status_code=404, detail="Site not found")
    return {"success": True, "data": site.to_dict()}


@router.put("/{site_id}")
def update_site(site_id: int, request: SiteUpdateRequest, store: DataStore = Depends(get_store)):
    """Update only the fields present in the request body"""
    fields = request.model_dump(exclude_unset=True)
    site = store.update_site(site_id, **fields)
    if not site:
        raise HTTPException(status_code=404, detail="Site not found")
    return {"success": True, "data": site.to_dict()}


@router.delete("/{site_id}")
def delete_site(site_id: int, store: DataStore = Depends(get_store)):
    """Delete a site together with its stored Search Console data"""
    if not store.delete_site(site_id):
        raise HTTPException(status_code=404, detail="Site not found")
    log.info(f"Deleted site {site_id}")
    return {"success": True, "message": f"Site {site_id} deleted"}
