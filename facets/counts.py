"""
Per-node result counts for the category and location facets.

Counts are taken over the candidate listings handed in, never over the
current selection.
"""
import logging
from collections import Counter
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple, Union

from .models import LocationLevel, LocationRef, Listing, NodeRef
from .resolver import resolve, resolve_location
from .snapshot import Snapshot
from .taxonomy import CategoryTree, LocationTree

logger = logging.getLogger(__name__)


def listing_matches_location(listing: Listing, ref: LocationRef) -> bool:
    """
    Ward refs match any address of the ward. Address ``k`` matches an equal
    index; ``k == 0`` also matches listings with no index recorded. A
    listing whose index could not be parsed matches no address.
    """
    if listing.location_id is None or listing.location_id != ref.ward_id:
        return False
    if ref.is_ward:
        return True
    if listing.bad_address_index:
        return False
    index = listing.selected_local_address_index
    if index is None:
        return ref.address_index == 0
    return index == ref.address_index


class LocationMatcher:
    """Matches listings against a set of ward/address composites in O(1)."""

    def __init__(self, refs: Iterable[LocationRef]):
        self.ward_ids = set()
        self.addresses = set()
        for ref in refs:
            if ref.is_ward:
                self.ward_ids.add(ref.ward_id)
            else:
                self.addresses.add((ref.ward_id, ref.address_index))

    def __call__(self, listing: Listing) -> bool:
        location_id = listing.location_id
        if location_id is None:
            return False
        if location_id in self.ward_ids:
            return True
        if listing.bad_address_index:
            return False
        index = listing.selected_local_address_index
        return (location_id, 0 if index is None else index) in self.addresses


def _category_leaves(tree: CategoryTree, ref: Any, name: Optional[str]) -> FrozenSet[int]:
    target = resolve(tree, ref, name)
    return tree.items_under(target) if target is not None else frozenset()


def count_under(tree: CategoryTree, ref: Any, listings: Iterable[Listing], name: Optional[str] = None) -> int:
    """Number of listings whose category_id is an Item under ``ref``; NotFound counts 0."""
    leaves = _category_leaves(tree, ref, name)
    if not leaves:
        return 0
    return sum(1 for listing in listings if listing.category_id in leaves)


def _location_leaves(tree: LocationTree, ref: Any) -> FrozenSet[LocationRef]:
    target = resolve_location(tree, ref)
    if target is None:
        return frozenset()
    if isinstance(target, LocationRef):
        return frozenset([target])
    return tree.leaves_under(target)


def count_location_under(tree: LocationTree, ref: Any, listings: Iterable[Listing]) -> int:
    """Number of listings located under a branch, a ward, or one ward address."""
    leaves = _location_leaves(tree, ref)
    if not leaves:
        return 0
    matcher = LocationMatcher(leaves)
    return sum(1 for listing in listings if matcher(listing))


CountKey = Union[NodeRef, str]


class CountAggregator:
    """
    Counts for every facet node of one snapshot.

    Results are memoized per (ref, snapshot version), so repeated lookups
    in a render pass are free and a refreshed snapshot never reuses them.
    """

    def __init__(self, snapshot: Snapshot, listings: Optional[Iterable[Listing]] = None):
        self.snapshot = snapshot
        self.listings = tuple(snapshot.listings if listings is None else listings)
        self._memo: Dict[Tuple[str, Any, int], int] = {}
        self._by_category: Optional[Counter] = None

    def _key(self, kind: str, ref: Any) -> Tuple[str, Any, int]:
        return (kind, ref, self.snapshot.version)

    def count_items(self, item_ids: Iterable[int]) -> int:
        """Listings whose category_id is one of ``item_ids`` (not memoized)."""
        if self._by_category is None:
            self._by_category = Counter(l.category_id for l in self.listings if l.category_id is not None)
        return sum(self._by_category[item_id] for item_id in item_ids)

    def count(self, ref: Any, name: Optional[str] = None) -> int:
        target = resolve(self.snapshot.categories, ref, name)
        if target is None:
            return 0
        key = self._key("category", target)
        if key not in self._memo:
            self._memo[key] = self.count_items(self.snapshot.categories.items_under(target))
        return self._memo[key]

    def count_location(self, ref: Any) -> int:
        target = resolve_location(self.snapshot.locations, ref)
        if target is None:
            return 0
        key = self._key("location", target)
        if key not in self._memo:
            self._memo[key] = count_location_under(self.snapshot.locations, target, self.listings)
        return self._memo[key]

    def category_counts(self) -> Dict[NodeRef, int]:
        return {ref: self.count(ref) for ref in self.snapshot.categories.iter_refs()}

    def location_counts(self) -> Dict[CountKey, int]:
        """Branch counts keyed by ``NodeRef``; ward and address counts by composite string."""
        tree = self.snapshot.locations
        counts: Dict[CountKey, int] = {}
        for level in (LocationLevel.PROVINCE, LocationLevel.DISTRICT, LocationLevel.LOCAL_LEVEL):
            for node in tree.nodes(level):
                counts[node.ref] = self.count_location(node.ref)
        for ward in tree.wards():
            for composite in ward.composites():
                counts[str(composite)] = self.count_location(composite)
        return counts
