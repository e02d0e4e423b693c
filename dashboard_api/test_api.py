"""
API tests using FastAPI's TestClient against an in-memory snapshot.
"""
import json
import sqlite3

import pytest
from fastapi.testclient import TestClient

from facets import LocationRef, Snapshot

from dashboard_api.config import Config
from dashboard_api.main import app
from dashboard_api.snapshot_store import store


@pytest.fixture
def client(snapshot):
    store.replace(snapshot)
    return TestClient(app)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["listings"] == 8


def test_categories_with_counts(client):
    response = client.get("/api/categories")
    assert response.status_code == 200
    electronics = response.json()[0]
    assert electronics["name"] == "Electronics"
    assert electronics["count"] == 4
    phones = next(c for c in electronics["children"] if c["name"] == "Phones")
    assert phones["level"] == "field"
    assert phones["count"] == 2


def test_category_counts_follow_text_query(client):
    response = client.get("/api/categories", params={"q": "iphone"})
    electronics = response.json()[0]
    assert electronics["count"] == 1


def test_locations_with_counts(client):
    response = client.get("/api/locations")
    assert response.status_code == 200
    koshi = response.json()[0]
    assert koshi["count"] == 5
    ward = koshi["children"][0]["children"][0]["wards"][0]
    assert ward["id"] == 7
    assert ward["name"] == "Ward 3"
    assert ward["count"] == 4
    assert [a["ref"] for a in ward["addresses"]] == ["7-0", "7-1", "7-2"]
    assert [a["count"] for a in ward["addresses"]] == [2, 1, 1]


def test_facets_report_check_states(client):
    body = {"selection": {"category_items": [5], "locations": ["7-2"]}}
    response = client.post("/api/facets", json=body)
    assert response.status_code == 200
    data = response.json()
    electronics = data["categories"][0]
    assert electronics["state"] == "partial"
    ward = data["locations"][0]["children"][0]["children"][0]["wards"][0]
    assert ward["state"] == "partial"
    assert ward["addresses"][2]["state"] == "checked"


def test_resolve(client):
    response = client.post("/api/resolve", json={"id": 5, "name": "Cars"})
    assert response.status_code == 200
    assert response.json() == {"level": "field", "id": 5, "name": "Cars"}

    response = client.post("/api/resolve", json={"id": 5, "level": "item"})
    assert response.json()["name"] == "Android"


def test_resolve_not_found(client):
    assert client.post("/api/resolve", json={"id": 999}).status_code == 404
    assert client.post("/api/resolve", json={"id": 5, "level": "galaxy"}).status_code == 422


def test_toggle_category(client):
    response = client.post("/api/selection/category/toggle", json={"id": 12, "level": "field"})
    assert response.status_code == 200
    data = response.json()
    assert data["category_items"] == [5, 6]
    assert data["selected_fields"] == [12]

    response = client.post("/api/selection/category/toggle", json={
        "selection": {"category_items": data["category_items"]},
        "id": 12,
        "level": "field",
    })
    assert response.json()["category_items"] == []


def test_toggle_empty_field_pins_it(client):
    response = client.post("/api/selection/category/toggle", json={"id": 14})
    data = response.json()
    assert data["category_items"] == []
    assert data["category_pinned"] == ["field:14"]

    search = client.post("/api/listings/search", json={"selection": data})
    assert search.json()["total_count"] == 0


def test_toggle_locations(client):
    response = client.post("/api/selection/location/toggle-branch", json={"ref": "district:2"})
    assert response.json()["locations"] == [9, "9-0", "9-1"]

    response = client.post("/api/selection/location/toggle-leaf", json={"ref": "7-2"})
    assert response.json()["locations"] == ["7-2"]


def test_search(client):
    body = {"selection": {"locations": ["7-0"]}, "sort": "price_desc"}
    response = client.post("/api/listings/search", json=body)
    assert response.status_code == 200
    data = response.json()
    assert [item["id"] for item in data["items"]] == [2, 1]
    assert data["total_count"] == 2
    assert data["page_count"] == 1


def test_search_price_bounds(client):
    response = client.post("/api/listings/search", json={"min_price": 100, "max_price": 1200, "sort": "price-asc"})
    assert [item["id"] for item in response.json()["items"]] == [1, 2, 3]


def test_search_rejects_bad_input(client):
    assert client.post("/api/listings/search", json={"sort": "cheapest"}).status_code == 422
    assert client.post("/api/listings/search", json={"page_size": 0}).status_code == 422


def test_export_csv(client):
    response = client.post("/api/export/csv", json={"query": "phone"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("id,title,description,price")
    assert len(lines) == 3


def test_snapshot_refresh_bumps_version(client, tmp_path, monkeypatch, category_payload, location_payload):
    (tmp_path / "categories.json").write_text(json.dumps(category_payload), encoding="utf-8")
    (tmp_path / "locations.json").write_text(json.dumps(location_payload), encoding="utf-8")
    (tmp_path / "listings.json").write_text(json.dumps({"ads": [{"id": 1, "title": "Only one"}]}), encoding="utf-8")
    monkeypatch.setattr(Config, "DATA_DIR", str(tmp_path))
    monkeypatch.setattr(Config, "DB_PATH", None)

    before = client.get("/api/snapshot").json()
    response = client.post("/api/snapshot/refresh")
    assert response.status_code == 200
    after = response.json()
    assert after["version"] == before["version"] + 1
    assert after["listings"] == 1
    assert after["wards"] == 3


def test_snapshot_from_sqlite(tmp_path, monkeypatch, category_payload):
    """Listings and location rows come from sqlite when a database is configured."""
    db_path = tmp_path / "facets.db"
    conn = sqlite3.connect(str(db_path))
    conn.execute(
        "CREATE TABLE ads (id INTEGER, title TEXT, description TEXT, price REAL, category_id INTEGER, "
        "location_id INTEGER, selected_local_address_index INTEGER)"
    )
    conn.execute(
        "CREATE TABLE locations (id INTEGER, province TEXT, district TEXT, local_level TEXT, "
        "local_level_type TEXT, ward_number INTEGER, local_address TEXT)"
    )
    conn.execute("INSERT INTO ads VALUES (1, 'Samsung Galaxy', 'Android phone', 300, 5, 7, 1)")
    conn.execute("INSERT INTO locations VALUES (7, 'Koshi', 'Jhapa', 'Mechinagar', 'Municipality', 3, 'Kakarbhitta, Dhulabari')")
    conn.commit()
    conn.close()
    (tmp_path / "categories.json").write_text(json.dumps(category_payload), encoding="utf-8")
    monkeypatch.setattr(Config, "DATA_DIR", str(tmp_path))
    monkeypatch.setattr(Config, "DB_PATH", str(db_path))

    snapshot = store.refresh()
    assert [l.title for l in snapshot.listings] == ["Samsung Galaxy"]
    assert snapshot.locations.ward(7).local_addresses == ["Kakarbhitta", "Dhulabari"]
    assert snapshot.locations.contains(LocationRef(7, 1))


def test_duplicate_domain_counts_its_own_items(category_payload, listing_payload):
    category_payload.append({"id": 5, "name": "Electronics (legacy)", "item_categories": [{"id": 99, "name": "Pagers"}]})
    listing_payload.append({"id": 9, "title": "Old pager", "price": 5, "category_id": 99, "location_id": 8})
    store.replace(Snapshot.from_payloads(category_payload, None, listing_payload))
    client = TestClient(app)

    response = client.post("/api/facets", json={"selection": {"category_items": [99]}})
    assert response.status_code == 200
    domains = {d["name"]: d for d in response.json()["categories"]}
    assert domains["Electronics"]["count"] == 4
    assert domains["Electronics"]["state"] == "unchecked"
    assert domains["Electronics (legacy)"]["count"] == 1
    assert domains["Electronics (legacy)"]["state"] == "checked"


def test_page_size_bounds_follow_config(client):
    response = client.post("/api/listings/search", json={})
    assert response.json()["page_size"] == Config.DEFAULT_PAGE_SIZE
    assert client.post("/api/listings/search", json={"page_size": Config.MAX_PAGE_SIZE}).status_code == 200
    assert client.post("/api/listings/search", json={"page_size": Config.MAX_PAGE_SIZE + 1}).status_code == 422
