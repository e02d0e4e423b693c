"""
API route handlers for listings endpoints.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from facets import Snapshot, apply
from facets.export import listings_to_frame
from facets.pipeline import filter_listings, normalize_sort_key, sort_listings

from ..config import config
from ..models import ListingOut, PageOut, SearchRequest
from ..snapshot_store import get_snapshot

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["listings"])


def _sort_key_or_422(sort: str) -> str:
    try:
        return normalize_sort_key(sort)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/listings/search", response_model=PageOut)
async def search_listings(body: SearchRequest, snapshot: Snapshot = Depends(get_snapshot)):
    """Filter, sort and paginate the listing snapshot."""
    sort_key = _sort_key_or_422(body.sort)
    try:
        category, location = body.selection.to_core()
        result = apply(
            snapshot.listings,
            query=body.query,
            category_selection=category,
            location_selection=location,
            sort_key=sort_key,
            page=body.page,
            page_size=body.page_size,
            category_tree=snapshot.categories,
            min_price=body.min_price,
            max_price=body.max_price,
        )
        return PageOut(
            items=[ListingOut.from_listing(l) for l in result.items],
            total_count=result.total_count,
            page_count=result.page_count,
            page=result.page,
            page_size=result.page_size,
        )
    except Exception as e:
        logger.error(f"Error searching listings: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/export/csv")
async def export_listings_csv(body: SearchRequest, snapshot: Snapshot = Depends(get_snapshot)):
    """Export filtered listings as CSV."""
    sort_key = _sort_key_or_422(body.sort)
    try:
        category, location = body.selection.to_core()
        # All matching listings, no pagination for export
        matching = filter_listings(
            snapshot.listings,
            query=body.query,
            category_selection=category,
            location_selection=location,
            category_tree=snapshot.categories,
            min_price=body.min_price,
            max_price=body.max_price,
        )
        matching = sort_listings(matching, sort_key)[:config.MAX_EXPORT_ROWS]
        df = listings_to_frame(matching)
        csv_content = df.to_csv(index=False).encode('utf-8')

        return StreamingResponse(
            iter([csv_content]),
            media_type='text/csv',
            headers={'Content-Disposition': 'attachment; filename="listings.csv"'}
        )

    except Exception as e:
        logger.error(f"Error exporting CSV: {e}")
        raise HTTPException(status_code=500, detail="Error generating CSV export")
