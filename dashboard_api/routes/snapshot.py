"""
Snapshot status and refresh route handlers.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from facets import CategoryLevel, Snapshot

from ..snapshot_store import get_snapshot, store

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/snapshot", tags=["snapshot"])


class SnapshotOut(BaseModel):
    version: int
    listings: int
    domains: int
    fields: int
    items: int
    provinces: int
    wards: int


def describe(snapshot: Snapshot) -> SnapshotOut:
    return SnapshotOut(
        version=snapshot.version,
        listings=len(snapshot.listings),
        domains=len(snapshot.categories.nodes(CategoryLevel.DOMAIN)),
        fields=len(snapshot.categories.nodes(CategoryLevel.FIELD)),
        items=len(snapshot.categories.nodes(CategoryLevel.ITEM)),
        provinces=len(snapshot.locations.provinces),
        wards=len(snapshot.locations.wards()),
    )


@router.get("", response_model=SnapshotOut)
async def get_snapshot_info(snapshot: Snapshot = Depends(get_snapshot)):
    """Size and version of the snapshot being served."""
    return describe(snapshot)


@router.post("/refresh", response_model=SnapshotOut)
async def refresh_snapshot():
    """Reload taxonomies and listings; requests already running keep their snapshot."""
    try:
        snapshot = store.refresh()
        logger.info(f"Snapshot refreshed to v{snapshot.version}")
        return describe(snapshot)
    except Exception as e:
        logger.error(f"Error refreshing snapshot: {e}")
        raise HTTPException(status_code=500, detail="Snapshot refresh failed")
