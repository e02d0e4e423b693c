"""
Faceted filtering core for the classifieds dashboard
"""
from .models import (
    CategoryLevel,
    CategoryNode,
    CheckState,
    Listing,
    LocationLevel,
    LocationNode,
    LocationRef,
    NodeRef,
    PageResult,
    Ward,
)
from .taxonomy import (
    CategoryTree,
    LocationTree,
    build_category_tree,
    build_location_tree,
    location_payload_from_rows,
)
from .resolver import resolve, resolve_location
from .selection import (
    CategorySelection,
    LocationSelection,
    SelectionState,
    category_check_state,
    expand_category,
    leaf_check_state,
    location_check_state,
    selected_domains,
    selected_fields,
    toggle_category_branch,
    toggle_location_branch,
    toggle_location_leaf,
)
from .counts import CountAggregator, count_location_under, count_under, listing_matches_location
from .snapshot import Snapshot
from .pipeline import DEFAULT_PAGE_SIZE, SORT_KEYS, apply
from .utils import init_logger

__version__ = "1.0.0"

__all__ = [
    "CategoryLevel",
    "CategoryNode",
    "CheckState",
    "Listing",
    "LocationLevel",
    "LocationNode",
    "LocationRef",
    "NodeRef",
    "PageResult",
    "Ward",
    "CategoryTree",
    "LocationTree",
    "build_category_tree",
    "build_location_tree",
    "location_payload_from_rows",
    "resolve",
    "resolve_location",
    "CategorySelection",
    "LocationSelection",
    "SelectionState",
    "category_check_state",
    "expand_category",
    "leaf_check_state",
    "location_check_state",
    "selected_domains",
    "selected_fields",
    "toggle_category_branch",
    "toggle_location_branch",
    "toggle_location_leaf",
    "CountAggregator",
    "count_location_under",
    "count_under",
    "listing_matches_location",
    "Snapshot",
    "DEFAULT_PAGE_SIZE",
    "SORT_KEYS",
    "apply",
    "init_logger",
]
