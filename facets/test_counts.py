"""
Tests for per-node result counts.
"""
from facets.counts import (
    CountAggregator, LocationMatcher, count_location_under, count_under, listing_matches_location,
)
from facets.models import CategoryLevel, Listing, LocationLevel, LocationRef, NodeRef

DOMAIN = CategoryLevel.DOMAIN
FIELD = CategoryLevel.FIELD
ITEM = CategoryLevel.ITEM


def test_colliding_id_counts_the_right_subtree(category_tree, listings):
    """Listing with category_id 5 belongs to Item "Android", not Domain 5 or Field "Cars"."""
    assert count_under(category_tree, 5, listings, name="Android") == 1
    assert count_under(category_tree, 5, listings, name="Cars") == 2
    assert count_under(category_tree, 5, listings) == 4


def test_count_under(category_tree, listings):
    assert count_under(category_tree, NodeRef(FIELD, 12), listings) == 2
    assert count_under(category_tree, NodeRef(FIELD, 13), listings) == 1
    assert count_under(category_tree, NodeRef(FIELD, 14), listings) == 0
    assert count_under(category_tree, NodeRef(DOMAIN, 12), listings) == 2
    assert count_under(category_tree, NodeRef(DOMAIN, 7), listings) == 1
    assert count_under(category_tree, 999, listings) == 0


def test_subtree_additivity(category_tree, listings):
    """A branch count equals the sum over its children."""
    for ref in category_tree.iter_refs():
        node = category_tree.node(ref)
        if not node.children:
            continue
        total = sum(count_under(category_tree, child.ref, listings) for child in node.children)
        assert count_under(category_tree, ref, listings) == total


def test_address_index_zero_matches_missing_index():
    ward_level = Listing(id=1, location_id=7, selected_local_address_index=None)
    assert listing_matches_location(ward_level, LocationRef(7))
    assert listing_matches_location(ward_level, LocationRef(7, 0))
    assert not listing_matches_location(ward_level, LocationRef(7, 1))

    second = Listing(id=2, location_id=7, selected_local_address_index=1)
    assert listing_matches_location(second, LocationRef(7))
    assert not listing_matches_location(second, LocationRef(7, 0))
    assert listing_matches_location(second, LocationRef(7, 1))
    assert not listing_matches_location(second, LocationRef(8))


def test_unparseable_address_index_matches_ward_only():
    """An index that is present but not a number is not the same as no index."""
    listing = Listing.from_dict({"id": 1, "location_id": 7, "selected_local_address_index": "abc"})
    assert listing_matches_location(listing, LocationRef(7))
    assert not listing_matches_location(listing, LocationRef(7, 0))
    assert not listing_matches_location(listing, LocationRef(7, 1))

    matcher = LocationMatcher([LocationRef(7, 0), LocationRef(7, 1)])
    assert not matcher(listing)
    assert LocationMatcher([LocationRef(7)])(listing)


def test_location_counts(location_tree, listings):
    assert count_location_under(location_tree, 7, listings) == 4
    assert count_location_under(location_tree, "7-0", listings) == 2
    assert count_location_under(location_tree, "7-1", listings) == 1
    assert count_location_under(location_tree, "7-2", listings) == 1
    assert count_location_under(location_tree, 8, listings) == 1
    assert count_location_under(location_tree, "9-1", listings) == 1
    assert count_location_under(location_tree, "province:1", listings) == 5
    assert count_location_under(location_tree, "province:2", listings) == 2
    assert count_location_under(location_tree, "7-5", listings) == 0


def test_aggregator_matches_direct_counts(snapshot):
    aggregator = CountAggregator(snapshot)
    for ref, count in aggregator.category_counts().items():
        assert count == count_under(snapshot.categories, ref, snapshot.listings)
    counts = aggregator.location_counts()
    assert counts[NodeRef(LocationLevel.DISTRICT, 1)] == 5
    assert counts["7"] == 4
    assert counts["7-0"] == 2
    assert counts["9-0"] == 1


def test_aggregator_counts_given_candidates(snapshot):
    candidates = [l for l in snapshot.listings if l.id in (1, 2)]
    aggregator = CountAggregator(snapshot, candidates)
    assert aggregator.count(NodeRef(DOMAIN, 5)) == 2
    assert aggregator.count(NodeRef(FIELD, 13)) == 0
    assert aggregator.count_location(LocationRef(7)) == 2


def test_aggregator_memo_is_keyed_by_version(snapshot):
    aggregator = CountAggregator(snapshot)
    assert aggregator.count(NodeRef(ITEM, 5)) == 1
    assert aggregator.count(NodeRef(ITEM, 5)) == 1
    assert ("category", NodeRef(ITEM, 5), snapshot.version) in aggregator._memo

    refreshed = snapshot.refreshed(listings=[])
    assert refreshed.version == snapshot.version + 1
    assert CountAggregator(refreshed).count(NodeRef(ITEM, 5)) == 0
