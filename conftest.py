"""
Shared fixtures: a small taxonomy with colliding ids and a listing snapshot.
"""
import copy

import pytest

from facets import Snapshot, build_category_tree, build_location_tree
from facets.snapshot import load_listings

# Domain 5, Field 5 and Item 5 coexist; so do Domain 12, Field 12 and Item 12.
CATEGORY_PAYLOAD = [
    {
        "id": 5,
        "name": "Electronics",
        "field_categories": [
            {"id": 12, "name": "Phones", "item_categories": [
                {"id": 5, "name": "Android"},
                {"id": 6, "name": "iPhone"},
            ]},
            {"id": 13, "name": "Laptops", "item_categories": [
                {"id": 20, "name": "Gaming Laptops"},
            ]},
            {"id": 14, "name": "Drones", "item_categories": []},
        ],
        "item_categories": [{"id": 30, "name": "Cables"}],
    },
    {
        "id": 12,
        "name": "Vehicles",
        "field_categories": [
            {"id": 5, "name": "Cars", "item_categories": [
                {"id": 12, "name": "Sedan"},
                {"id": 40, "name": "SUV"},
            ]},
        ],
    },
    {"id": 7, "name": "Books", "item_categories": [{"id": 41, "name": "Novels"}]},
    {"id": 8, "name": "Empty Domain"},
]

LOCATION_PAYLOAD = {
    "provinces": [
        {"id": 1, "name": "Koshi", "districts": [
            {"id": 1, "name": "Jhapa", "localLevels": [
                {"id": 1, "name": "Mechinagar", "type": "municipality", "wards": [
                    {"id": 7, "ward_number": 3, "local_addresses": ["Kakarbhitta", "Dhulabari", "Bahundangi"]},
                    {"id": 8, "ward_number": 4, "local_addresses": []},
                ]},
            ]},
        ]},
        {"id": 2, "name": "Bagmati", "districts": [
            {"id": 2, "name": "Kathmandu", "localLevels": [
                {"id": 2, "name": "Kathmandu Metro", "type": "municipality", "wards": [
                    {"id": 9, "ward_number": 1, "local_addresses": "Thamel, Lazimpat"},
                ]},
            ]},
        ]},
    ]
}

LISTING_PAYLOAD = [
    {"id": 1, "title": "Samsung Galaxy", "description": "Android phone", "price": 300,
     "category_id": 5, "location_id": 7, "selected_local_address_index": 0},
    {"id": 2, "title": "iPhone 12", "description": "Like new", "price": 500,
     "category_id": 6, "location_id": 7, "selected_local_address_index": None},
    {"id": 3, "title": "Gaming laptop", "description": "RTX graphics", "price": 1200,
     "category_id": 20, "location_id": 8},
    {"id": 4, "title": "USB cable", "description": "Type C", "price": "15",
     "category_id": "30", "location_id": "9", "selected_local_address_index": 1},
    {"id": 5, "title": "Toyota Corolla", "description": "Family sedan", "price": 15000,
     "category_id": 12, "location_id": 9, "selected_local_address_index": 0},
    {"id": 6, "title": "Used SUV", "description": "Needs work", "price": None,
     "category_id": 40, "location_id": 7, "selected_local_address_index": 2},
    {"id": 7, "title": "Novel collection", "description": "Ten paperbacks", "price": 20,
     "category_id": 41, "location_id": "abc"},
    {"id": 8, "title": "Mystery item", "description": "Ask me", "price": 50,
     "category_id": "x", "location_id": 7, "selected_local_address_index": 1},
]


@pytest.fixture
def category_payload():
    return copy.deepcopy(CATEGORY_PAYLOAD)


@pytest.fixture
def location_payload():
    return copy.deepcopy(LOCATION_PAYLOAD)


@pytest.fixture
def listing_payload():
    return copy.deepcopy(LISTING_PAYLOAD)


@pytest.fixture
def category_tree(category_payload):
    return build_category_tree(category_payload)


@pytest.fixture
def location_tree(location_payload):
    return build_location_tree(location_payload)


@pytest.fixture
def listings(listing_payload):
    return load_listings(listing_payload)


@pytest.fixture
def snapshot(category_payload, location_payload, listing_payload):
    return Snapshot.from_payloads(category_payload, location_payload, listing_payload)
