#!/usr/bin/env python3
"""
Unit tests for the value types and coercion helpers.
This uses Python's built-in unittest framework.
"""
import unittest

from facets.models import CategoryLevel, Listing, LocationLevel, LocationRef, NodeRef, Ward
from facets.utils import clean_text, strip_text, to_float, to_int


class TestCoercion(unittest.TestCase):
    """Tolerant number coercion for loosely typed payloads."""

    def test_to_int(self):
        self.assertEqual(to_int(12), 12)
        self.assertEqual(to_int("12"), 12)
        self.assertEqual(to_int(" 12 "), 12)
        self.assertEqual(to_int("12.0"), 12)
        self.assertEqual(to_int(12.0), 12)
        self.assertIsNone(to_int(12.5))
        self.assertIsNone(to_int("abc"))
        self.assertIsNone(to_int(""))
        self.assertIsNone(to_int(None))
        self.assertIsNone(to_int(True))

    def test_to_float(self):
        self.assertEqual(to_float("1,500"), 1500.0)
        self.assertEqual(to_float(300), 300.0)
        self.assertIsNone(to_float("free"))
        self.assertIsNone(to_float(float("nan")))
        self.assertIsNone(to_float(False))

    def test_text_cleaning(self):
        self.assertEqual(clean_text("  Hello   World  \n"), "Hello World")
        self.assertEqual(clean_text(None), "")
        self.assertEqual(strip_text("  USB  cable\n"), "USB  cable")
        self.assertEqual(strip_text(None), "")


class TestRefs(unittest.TestCase):
    """Tagged and composite references."""

    def test_node_ref_round_trip(self):
        ref = NodeRef(CategoryLevel.FIELD, 12)
        self.assertEqual(str(ref), "field:12")
        self.assertEqual(NodeRef.parse("field:12"), ref)
        self.assertEqual(NodeRef.parse("local_level:3"), NodeRef(LocationLevel.LOCAL_LEVEL, 3))

    def test_node_ref_parse_rejects_garbage(self):
        self.assertIsNone(NodeRef.parse("12"))
        self.assertIsNone(NodeRef.parse("planet:3"))
        self.assertIsNone(NodeRef.parse("field:x"))
        self.assertIsNone(NodeRef.parse(""))

    def test_refs_from_different_levels_differ(self):
        self.assertNotEqual(NodeRef(CategoryLevel.DOMAIN, 5), NodeRef(CategoryLevel.ITEM, 5))

    def test_location_ref_encoding(self):
        self.assertEqual(str(LocationRef(7)), "7")
        self.assertEqual(str(LocationRef(7, 2)), "7-2")
        self.assertEqual(LocationRef.parse("7-2"), LocationRef(7, 2))
        self.assertEqual(LocationRef.parse("7"), LocationRef(7))
        self.assertEqual(LocationRef.parse(7), LocationRef(7))
        self.assertTrue(LocationRef(7).is_ward)
        self.assertFalse(LocationRef(7, 0).is_ward)

    def test_location_ref_parse_rejects_garbage(self):
        self.assertIsNone(LocationRef.parse("7-x"))
        self.assertIsNone(LocationRef.parse("abc"))
        self.assertIsNone(LocationRef.parse(None))
        self.assertIsNone(LocationRef.parse(True))

    def test_ward_composites(self):
        ward = Ward(id=7, ward_number=3, local_addresses=["A", "B"])
        self.assertEqual(ward.name, "Ward 3")
        self.assertEqual(ward.composites(), [LocationRef(7), LocationRef(7, 0), LocationRef(7, 1)])


class TestListing(unittest.TestCase):
    """Listing construction from raw payload rows."""

    def test_from_dict_coerces_fields(self):
        listing = Listing.from_dict({
            "id": "9",
            "title": "  Old   bike ",
            "price": "1,200",
            "category_id": "30",
            "location_id": "7",
            "selected_local_address_index": "2",
            "image_url": "http://img",
        })
        self.assertEqual(listing.id, 9)
        self.assertEqual(listing.title, "Old   bike")
        self.assertFalse(listing.bad_address_index)
        self.assertEqual(listing.price, 1200.0)
        self.assertEqual(listing.category_id, 30)
        self.assertEqual(listing.location_id, 7)
        self.assertEqual(listing.selected_local_address_index, 2)
        self.assertEqual(listing.extra, {"image_url": "http://img"})
        self.assertEqual(listing.to_dict()["image_url"], "http://img")

    def test_from_dict_keeps_uncoercible_as_none(self):
        listing = Listing.from_dict({"id": 1, "category_id": "x", "location_id": None, "price": "ask"})
        self.assertIsNone(listing.category_id)
        self.assertIsNone(listing.location_id)
        self.assertIsNone(listing.price)

    def test_unparseable_address_index_is_flagged(self):
        listing = Listing.from_dict({"id": 1, "location_id": 7, "selected_local_address_index": "abc"})
        self.assertIsNone(listing.selected_local_address_index)
        self.assertTrue(listing.bad_address_index)

        for missing in (None, "", "  "):
            listing = Listing.from_dict({"id": 1, "location_id": 7, "selected_local_address_index": missing})
            self.assertFalse(listing.bad_address_index)


if __name__ == '__main__':
    unittest.main()
