"""
Immutable bundle of taxonomies and listings that one render pass works on.
"""
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Tuple

from .models import Listing
from .taxonomy import CategoryTree, LocationTree, build_category_tree, build_location_tree

logger = logging.getLogger(__name__)


def load_listings(raw_listings: Any) -> Tuple[Listing, ...]:
    """Build listings from raw dicts; non-dict entries are dropped with a warning."""
    if isinstance(raw_listings, dict):
        raw_listings = raw_listings.get("ads") or raw_listings.get("listings")
    listings = []
    for raw in raw_listings or []:
        if isinstance(raw, Listing):
            listings.append(raw)
        elif isinstance(raw, dict):
            listings.append(Listing.from_dict(raw))
        else:
            logger.warning(f"Skipping malformed listing entry: {raw!r}")
    return tuple(listings)


@dataclass(frozen=True)
class Snapshot:
    categories: CategoryTree
    locations: LocationTree
    listings: Tuple[Listing, ...]
    version: int = 1

    @classmethod
    def from_payloads(
        cls,
        categories: Any = None,
        locations: Any = None,
        listings: Optional[Iterable[Any]] = None,
        version: int = 1,
    ) -> "Snapshot":
        snapshot = cls(
            categories=build_category_tree(categories),
            locations=build_location_tree(locations),
            listings=load_listings(listings),
            version=version,
        )
        logger.info(f"Snapshot v{version} loaded with {len(snapshot.listings)} listings")
        return snapshot

    def refreshed(
        self,
        categories: Any = None,
        locations: Any = None,
        listings: Optional[Iterable[Any]] = None,
    ) -> "Snapshot":
        """New snapshot with the next version; parts passed as None are carried over."""
        return Snapshot(
            categories=self.categories if categories is None else build_category_tree(categories),
            locations=self.locations if locations is None else build_location_tree(locations),
            listings=self.listings if listings is None else load_listings(listings),
            version=self.version + 1,
        )
