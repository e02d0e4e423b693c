"""
Selection API route handlers.

Stateless: the client sends its current selection with every toggle and gets
the next selection back.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException

from facets import (
    Snapshot, resolve, toggle_category_branch, toggle_location_branch,
    toggle_location_leaf,
)

from ..models import CategoryToggleRequest, LocationToggleRequest, SelectionOut
from ..snapshot_store import get_snapshot
from .taxonomy import parse_category_level

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/selection", tags=["selection"])


@router.post("/category/toggle", response_model=SelectionOut)
async def toggle_category(body: CategoryToggleRequest, snapshot: Snapshot = Depends(get_snapshot)):
    """Select-all/deselect-all on a Domain, Field or Item."""
    level = parse_category_level(body.level)
    category, location = body.selection.to_core()
    try:
        target = resolve(snapshot.categories, body.id, body.name, level_hint=level)
        if target is not None:
            category = toggle_category_branch(category, snapshot.categories, target)
        else:
            logger.debug(f"Category toggle ignored, unresolvable id {body.id!r}")
        return SelectionOut.from_core(category, location, snapshot.categories)
    except Exception as e:
        logger.error(f"Error toggling category {body.id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/location/toggle-branch", response_model=SelectionOut)
async def toggle_location_branch_route(body: LocationToggleRequest, snapshot: Snapshot = Depends(get_snapshot)):
    """Select-all/deselect-all on a province, district, local level or ward."""
    category, location = body.selection.to_core()
    try:
        location = toggle_location_branch(location, snapshot.locations, body.ref)
        return SelectionOut.from_core(category, location, snapshot.categories)
    except Exception as e:
        logger.error(f"Error toggling location branch {body.ref}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/location/toggle-leaf", response_model=SelectionOut)
async def toggle_location_leaf_route(body: LocationToggleRequest, snapshot: Snapshot = Depends(get_snapshot)):
    """Flip one ward as a whole or one specific local address."""
    category, location = body.selection.to_core()
    try:
        location = toggle_location_leaf(location, snapshot.locations, body.ref)
        return SelectionOut.from_core(category, location, snapshot.categories)
    except Exception as e:
        logger.error(f"Error toggling location leaf {body.ref}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
