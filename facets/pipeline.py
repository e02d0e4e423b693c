"""
Listing filter, sort and pagination pipeline.

Stages run in a fixed order and each narrows the previous stage's output:
text -> category -> location -> price bounds -> sort -> paginate.
"""
import logging
import math
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .counts import LocationMatcher
from .models import Listing, PageResult
from .selection import CategorySelection, LocationSelection, expand_category
from .taxonomy import CategoryTree

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 40

SORT_KEYS = (
    "relevance",
    "price-asc",
    "price-desc",
    "title-asc",
    "title-desc",
    "newest-first",
    "rating",
)


def normalize_sort_key(sort_key: Optional[str]) -> str:
    """Accept ``price_asc`` style aliases; unknown keys raise ValueError."""
    key = (sort_key or "relevance").strip().lower().replace("_", "-")
    if key == "newest":
        key = "newest-first"
    if key not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_key!r}")
    return key


def filter_text(listings: List[Listing], query: Optional[str]) -> List[Listing]:
    if not (query or "").strip():
        return listings
    needle = query.casefold()
    return [
        l for l in listings
        if needle in l.title.casefold() or needle in l.description.casefold()
    ]


def filter_category(
    listings: List[Listing],
    selection: Optional[CategorySelection],
    tree: Optional[CategoryTree],
) -> List[Listing]:
    if selection is None or selection.is_empty:
        return listings
    if tree is None:
        active, item_ids = True, selection.items
    else:
        active, item_ids = expand_category(selection, tree)
    if not active:
        return listings
    if not item_ids:
        logger.debug("Category selection expands to no items; nothing matches")
        return []
    return [l for l in listings if l.category_id in item_ids]


def filter_location(listings: List[Listing], selection: Optional[LocationSelection]) -> List[Listing]:
    if selection is None or selection.is_empty:
        return listings
    matcher = LocationMatcher(selection.refs)
    return [l for l in listings if matcher(l)]


def filter_price(listings: List[Listing], min_price: Optional[float], max_price: Optional[float]) -> List[Listing]:
    if min_price is None and max_price is None:
        return listings
    kept = []
    for l in listings:
        if l.price is None:
            continue
        if min_price is not None and l.price < min_price:
            continue
        if max_price is not None and l.price > max_price:
            continue
        kept.append(l)
    return kept


def _split_priced(listings: List[Listing]) -> Tuple[List[Listing], List[Listing]]:
    priced = [l for l in listings if l.price is not None]
    unpriced = [l for l in listings if l.price is None]
    return priced, unpriced


def _by_price(descending: bool) -> Callable[[List[Listing]], List[Listing]]:
    def sort(listings):
        priced, unpriced = _split_priced(listings)
        return sorted(priced, key=lambda l: l.price, reverse=descending) + unpriced
    return sort


def _by_title(descending: bool) -> Callable[[List[Listing]], List[Listing]]:
    def sort(listings):
        return sorted(listings, key=lambda l: l.title.casefold(), reverse=descending)
    return sort


def _newest_first(listings):
    with_id = [l for l in listings if l.id is not None]
    without_id = [l for l in listings if l.id is None]
    return sorted(with_id, key=lambda l: l.id, reverse=True) + without_id


def _unchanged(listings):
    return list(listings)


# sorted() is stable, and reverse=True keeps ties in their original order
SORTERS: Dict[str, Callable[[List[Listing]], List[Listing]]] = {
    "relevance": _unchanged,
    "price-asc": _by_price(False),
    "price-desc": _by_price(True),
    "title-asc": _by_title(False),
    "title-desc": _by_title(True),
    "newest-first": _newest_first,
    "rating": _unchanged,  # ratings are not part of the snapshot; every listing rates 0
}


def sort_listings(listings: List[Listing], sort_key: Optional[str]) -> List[Listing]:
    return SORTERS[normalize_sort_key(sort_key)](listings)


def paginate(listings: List[Listing], page: int, page_size: int = DEFAULT_PAGE_SIZE) -> PageResult:
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    page = max(1, page)
    total = len(listings)
    page_count = math.ceil(total / page_size)
    start = (page - 1) * page_size
    return PageResult(
        items=listings[start:start + page_size],
        total_count=total,
        page_count=page_count,
        page=page,
        page_size=page_size,
    )


def filter_listings(
    listings: Iterable[Listing],
    query: Optional[str] = None,
    category_selection: Optional[CategorySelection] = None,
    location_selection: Optional[LocationSelection] = None,
    category_tree: Optional[CategoryTree] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> List[Listing]:
    """Run the narrowing stages only (no sort, no pagination)."""
    result = list(listings)
    result = filter_text(result, query)
    result = filter_category(result, category_selection, category_tree)
    result = filter_location(result, location_selection)
    result = filter_price(result, min_price, max_price)
    return result


def apply(
    listings: Iterable[Listing],
    query: Optional[str] = None,
    category_selection: Optional[CategorySelection] = None,
    location_selection: Optional[LocationSelection] = None,
    sort_key: Optional[str] = "relevance",
    page: int = 1,
    page_size: int = DEFAULT_PAGE_SIZE,
    category_tree: Optional[CategoryTree] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
) -> PageResult:
    """
    Filter, sort and paginate a listing snapshot.

    Pure: the same inputs always produce the same page. ``category_tree`` is
    needed to expand selected Domains and Fields into their Items.
    """
    key = normalize_sort_key(sort_key)
    result = filter_listings(
        listings,
        query=query,
        category_selection=category_selection,
        location_selection=location_selection,
        category_tree=category_tree,
        min_price=min_price,
        max_price=max_price,
    )
    result = SORTERS[key](result)
    return paginate(result, page, page_size)
