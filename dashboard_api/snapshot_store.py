"""
Holds the snapshot the API serves and swaps it on refresh.
"""
import json
import logging
import os
import threading
from typing import Any, Optional

from facets import Snapshot, location_payload_from_rows

from . import database
from .config import config

logger = logging.getLogger(__name__)


def _read_json(path: str) -> Any:
    if not os.path.exists(path):
        logger.warning(f"Snapshot source missing: {path}")
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def load_payloads():
    """Read category, location and listing payloads from the configured sources."""
    categories = _read_json(config.data_path(config.CATEGORIES_FILE))
    if config.DB_PATH:
        locations = location_payload_from_rows(database.load_location_rows())
        listings = database.load_listings()
    else:
        locations = _read_json(config.data_path(config.LOCATIONS_FILE))
        listings = _read_json(config.data_path(config.LISTINGS_FILE))
    return categories, locations, listings


class SnapshotStore:
    """
    Current snapshot plus a version counter.

    A request grabs the snapshot once and works on it to the end, so a
    refresh landing mid-request never mixes two versions.
    """

    def __init__(self):
        self._snapshot: Optional[Snapshot] = None
        self._lock = threading.Lock()

    def refresh(self) -> Snapshot:
        categories, locations, listings = load_payloads()
        with self._lock:
            version = self._snapshot.version + 1 if self._snapshot is not None else 1
            self._snapshot = Snapshot.from_payloads(categories, locations, listings, version=version)
            return self._snapshot

    def replace(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._snapshot = snapshot

    def current(self) -> Snapshot:
        snapshot = self._snapshot
        if snapshot is None:
            snapshot = self.refresh()
        return snapshot


store = SnapshotStore()


def get_snapshot() -> Snapshot:
    """FastAPI dependency returning the snapshot for this request."""
    return store.current()
