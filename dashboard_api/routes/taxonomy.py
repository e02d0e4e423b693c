"""
Taxonomy API route handlers: trees with per-node counts, and id resolution.
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from facets import (
    CategoryLevel, CategorySelection, CountAggregator, LocationRef,
    LocationSelection, Snapshot, category_check_state, leaf_check_state,
    location_check_state, resolve,
)
from facets.models import CategoryNode, LocationNode
from facets.pipeline import filter_listings

from ..models import (
    AddressOut, CategoryNodeOut, FacetQuery, LocationNodeOut, NodeRefOut,
    ResolveRequest, WardOut,
)
from ..snapshot_store import get_snapshot

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["taxonomy"])


class FacetsOut(BaseModel):
    snapshot_version: int
    categories: List[CategoryNodeOut]
    locations: List[LocationNodeOut]


def candidate_aggregator(
    snapshot: Snapshot,
    q: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> CountAggregator:
    """Counts run over the text/price candidates, never over the facet selection itself."""
    candidates = filter_listings(snapshot.listings, query=q, min_price=min_price, max_price=max_price)
    return CountAggregator(snapshot, candidates)


def category_view(
    node: CategoryNode,
    snapshot: Snapshot,
    aggregator: CountAggregator,
    selection: CategorySelection,
) -> CategoryNodeOut:
    tree = snapshot.categories
    if tree.is_indexed(node):
        count = aggregator.count(node.ref)
        state = category_check_state(selection, tree, node.ref)
    else:
        # Unindexed duplicate: count its own subtree, not the first node's
        leaves = tree.items_of(node)
        count = aggregator.count_items(leaves)
        state = leaf_check_state(selection.items, leaves)
    return CategoryNodeOut(
        level=node.level.value,
        id=node.id,
        name=node.name,
        count=count,
        state=state.value,
        children=[category_view(c, snapshot, aggregator, selection) for c in node.children],
    )


def location_view(
    node: LocationNode,
    snapshot: Snapshot,
    aggregator: CountAggregator,
    selection: LocationSelection,
) -> LocationNodeOut:
    tree = snapshot.locations
    wards = []
    for ward in node.wards:
        ward_ref = LocationRef(ward.id)
        addresses = []
        for index, text in enumerate(ward.local_addresses):
            ref = LocationRef(ward.id, index)
            addresses.append(AddressOut(
                index=index,
                text=text,
                ref=str(ref),
                count=aggregator.count_location(ref),
                state=location_check_state(selection, tree, ref).value,
            ))
        wards.append(WardOut(
            id=ward.id,
            ward_number=ward.ward_number,
            name=ward.name,
            count=aggregator.count_location(ward_ref),
            state=location_check_state(selection, tree, ward_ref).value,
            addresses=addresses,
        ))
    return LocationNodeOut(
        level=node.level.value,
        id=node.id,
        name=node.name,
        type=node.type,
        count=aggregator.count_location(node.ref),
        state=location_check_state(selection, tree, node.ref).value,
        children=[location_view(c, snapshot, aggregator, selection) for c in node.children],
        wards=wards,
    )


def parse_category_level(level: Optional[str]) -> Optional[CategoryLevel]:
    if not level:
        return None
    try:
        return CategoryLevel(level.strip().lower())
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Unknown category level: {level}")


@router.get("/categories", response_model=List[CategoryNodeOut])
async def get_categories(
    q: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    snapshot: Snapshot = Depends(get_snapshot),
):
    """Category tree with per-node counts."""
    try:
        aggregator = candidate_aggregator(snapshot, q, min_price, max_price)
        selection = CategorySelection()
        return [category_view(d, snapshot, aggregator, selection) for d in snapshot.categories.domains]
    except Exception as e:
        logger.error(f"Error building category tree: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/locations", response_model=List[LocationNodeOut])
async def get_locations(
    q: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    snapshot: Snapshot = Depends(get_snapshot),
):
    """Location tree with per-node counts."""
    try:
        aggregator = candidate_aggregator(snapshot, q, min_price, max_price)
        selection = LocationSelection()
        return [location_view(p, snapshot, aggregator, selection) for p in snapshot.locations.provinces]
    except Exception as e:
        logger.error(f"Error building location tree: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/facets", response_model=FacetsOut)
async def post_facets(body: FacetQuery, snapshot: Snapshot = Depends(get_snapshot)):
    """Both trees with counts and the tri-state of every node for the given selection."""
    try:
        category, location = body.selection.to_core()
        aggregator = candidate_aggregator(snapshot, body.query, body.min_price, body.max_price)
        return FacetsOut(
            snapshot_version=snapshot.version,
            categories=[category_view(d, snapshot, aggregator, category) for d in snapshot.categories.domains],
            locations=[location_view(p, snapshot, aggregator, location) for p in snapshot.locations.provinces],
        )
    except Exception as e:
        logger.error(f"Error building facets: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/resolve", response_model=NodeRefOut)
async def post_resolve(body: ResolveRequest, snapshot: Snapshot = Depends(get_snapshot)):
    """Resolve a raw (possibly ambiguous) category id to a tagged reference."""
    level = parse_category_level(body.level)
    ref = resolve(snapshot.categories, body.id, body.name, level_hint=level)
    if ref is None:
        raise HTTPException(status_code=404, detail="Category not found")
    node = snapshot.categories.node(ref)
    return NodeRefOut(level=ref.level.value, id=ref.id, name=node.name if node else "")
