"""
Export utilities for filtered listings and facet counts.
"""
from typing import Dict, Iterable, List, Union

import pandas as pd

from .models import Listing, NodeRef
from .taxonomy import CategoryTree, LocationTree

LISTING_COLUMNS = [
    "id", "title", "description", "price", "category_id",
    "location_id", "selected_local_address_index",
]


def listings_to_frame(listings: Iterable[Listing]) -> pd.DataFrame:
    """One row per listing; extra payload keys become trailing columns."""
    rows = [x.to_dict() for x in listings]
    if not rows:
        return pd.DataFrame(columns=LISTING_COLUMNS)
    df = pd.DataFrame(rows)
    extra = [c for c in df.columns if c not in LISTING_COLUMNS]
    return df[LISTING_COLUMNS + extra]


def counts_to_frame(
    counts: Dict[Union[NodeRef, str], int],
    tree: Union[CategoryTree, LocationTree, None] = None,
) -> pd.DataFrame:
    """Flatten aggregator output into ``level, id, name, count`` rows."""
    rows: List[dict] = []
    for key, count in counts.items():
        if isinstance(key, NodeRef):
            node = tree.node(key) if tree is not None else None
            rows.append({
                "level": key.level.value,
                "id": key.id,
                "name": node.name if node is not None else "",
                "count": count,
            })
        else:
            level = "local_address" if "-" in key else "ward"
            rows.append({"level": level, "id": key, "name": "", "count": count})
    return pd.DataFrame(rows, columns=["level", "id", "name", "count"])


def save_frame(df: pd.DataFrame, out_path: str) -> None:
    if out_path.lower().endswith(".xlsx"):
        df.to_excel(out_path, index=False)
    else:
        df.to_csv(out_path, index=False)


def save_output_rows(listings: List[Listing], out_path: str, logger=None):
    """Save listings to CSV or Excel file."""
    df = listings_to_frame(listings)
    save_frame(df, out_path)

    if logger:
        logger.info(f">>> Saved {len(df)} rows to {out_path}")
    else:
        print(f">>> Saved {len(df)} rows to {out_path}")
