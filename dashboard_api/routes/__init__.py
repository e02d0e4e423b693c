"""
Route package initialization.
"""
from .listings import router as listings_router
from .selection import router as selection_router
from .snapshot import router as snapshot_router
from .taxonomy import router as taxonomy_router

__all__ = ["listings_router", "selection_router", "snapshot_router", "taxonomy_router"]
