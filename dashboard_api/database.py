"""
Database operations and connection management.
"""
import sqlite3
import logging
from contextlib import contextmanager
from typing import Any, Dict, List

from .config import config

logger = logging.getLogger(__name__)

LISTING_COLUMNS = (
    "id, title, description, price, category_id, location_id, selected_local_address_index"
)


@contextmanager
def get_db_connection():
    """Get a database connection with proper error handling."""
    conn = None
    try:
        if not config.DB_PATH:
            raise ValueError("Database path not configured")

        conn = sqlite3.connect(config.DB_PATH)
        conn.row_factory = sqlite3.Row  # Enable dict-like access
        yield conn
    except sqlite3.Error as e:
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn is not None:
            conn.close()


def _rows_to_dicts(cursor) -> List[Dict[str, Any]]:
    columns = [description[0] for description in cursor.description]
    return [dict(zip(columns, row)) for row in cursor.fetchall()]


def load_listings() -> List[Dict[str, Any]]:
    """Raw listing rows from the ads table; coercion happens in the core."""
    with get_db_connection() as conn:
        cursor = conn.execute(f"SELECT {LISTING_COLUMNS} FROM ads ORDER BY id")
        rows = _rows_to_dicts(cursor)
    logger.info(f"Loaded {len(rows)} listings from {config.DB_PATH}")
    return rows


def load_location_rows() -> List[Dict[str, Any]]:
    """Flat ward rows from the locations table."""
    with get_db_connection() as conn:
        cursor = conn.execute(
            "SELECT id, province, district, local_level, local_level_type, ward_number, local_address "
            "FROM locations ORDER BY province, district, local_level, ward_number"
        )
        return _rows_to_dicts(cursor)
