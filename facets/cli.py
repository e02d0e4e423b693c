"""
Command line front end: filter a listing snapshot stored as JSON files.
"""
import argparse
import json
import logging
import os
from typing import Any, Optional

import pandas as pd

from .counts import CountAggregator
from .export import counts_to_frame, save_frame, save_output_rows
from .models import LocationRef, NodeRef
from .pipeline import DEFAULT_PAGE_SIZE, SORT_KEYS, apply, filter_listings, sort_listings
from .selection import (
    CategorySelection, LocationSelection, toggle_category_branch,
    toggle_location_branch, toggle_location_leaf,
)
from .snapshot import Snapshot
from .utils import init_logger

logger = logging.getLogger(__name__)


def load_json(path: Optional[str]) -> Any:
    if not path:
        return None
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def parse_category_arg(text: str):
    """``domain:5`` is a tagged ref; ``5`` or ``5:Android`` go through the resolver."""
    tagged = NodeRef.parse(text)
    if tagged is not None:
        return tagged, None
    raw_id, _, name = text.partition(":")
    return raw_id.strip(), (name.strip() or None)


def build_selections(snapshot: Snapshot, categories, locations):
    category = CategorySelection()
    for text in categories or []:
        ref, name = parse_category_arg(text)
        category = toggle_category_branch(category, snapshot.categories, ref, name)

    location = LocationSelection()
    for text in locations or []:
        if ":" in text:
            location = toggle_location_branch(location, snapshot.locations, text)
        elif LocationRef.parse(text) is not None:
            location = toggle_location_leaf(location, snapshot.locations, text)
        else:
            logger.warning(f"Ignoring malformed location reference: {text}")
    return category, location


def parse_args(argv=None):
    ap = argparse.ArgumentParser(description="Faceted filtering over a classifieds listing snapshot")
    ap.add_argument("--categories", type=str, default=os.getenv("FACETS_CATEGORIES", ""), help="Path to category tree JSON")
    ap.add_argument("--locations", type=str, default=os.getenv("FACETS_LOCATIONS", ""), help="Path to location tree JSON")
    ap.add_argument("--listings", type=str, required=True, help="Path to listing snapshot JSON")
    ap.add_argument("--query", type=str, default="", help="Text searched in title and description")
    ap.add_argument("--category", action="append", default=[],
                    help="Category to toggle: LEVEL:ID (e.g. field:12) or ID[:NAME]; repeatable")
    ap.add_argument("--location", action="append", default=[],
                    help="Location to toggle: LEVEL:ID for branches, WARD or WARD-INDEX for leaves; repeatable")
    ap.add_argument("--sort", choices=SORT_KEYS, default="relevance", help="Sort order")
    ap.add_argument("--page", type=int, default=1, help="1-based page number")
    ap.add_argument("--page-size", type=int, default=DEFAULT_PAGE_SIZE, help="Listings per page")
    ap.add_argument("--min-price", type=float, default=None, help="Inclusive lower price bound")
    ap.add_argument("--max-price", type=float, default=None, help="Inclusive upper price bound")
    ap.add_argument("--counts", action="store_true", help="Print per-node counts for the filtered candidates")
    ap.add_argument("--out", type=str, default="", help="CSV/XLSX to export all filtered listings (or counts with --counts)")
    # Logging
    lvl_choices = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    ap.add_argument("--log-level", choices=lvl_choices, default=None,
                    help="Global log level for both console and file (overrides --log-console/--log-file).")
    ap.add_argument("--log-console", choices=lvl_choices, default=os.getenv("LOG_CONSOLE", "INFO"),
                    help="Console log level (default from env LOG_CONSOLE or INFO).")
    ap.add_argument("--log-file", choices=lvl_choices, default=os.getenv("LOG_FILE", "DEBUG"),
                    help="File log level (default from env LOG_FILE or DEBUG).")
    ap.add_argument("--log-file-path", default=os.getenv("LOG_FILE_PATH", "facets.log"),
                    help="Path to log file (default from env LOG_FILE_PATH or facets.log).")
    ap.add_argument("--no-file-log", action="store_true",
                    help="Disable file logging (only console output).")
    return ap.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    eff_console = args.log_level or args.log_console
    eff_file = args.log_level or args.log_file
    init_logger(
        console_level=eff_console,
        file_level=eff_file,
        log_file=None if args.no_file_log else args.log_file_path
    )

    snapshot = Snapshot.from_payloads(
        categories=load_json(args.categories),
        locations=load_json(args.locations),
        listings=load_json(args.listings),
    )
    category, location = build_selections(snapshot, args.category, args.location)

    if args.counts:
        candidates = filter_listings(
            snapshot.listings,
            query=args.query,
            min_price=args.min_price,
            max_price=args.max_price,
        )
        aggregator = CountAggregator(snapshot, candidates)
        df = pd.concat([
            counts_to_frame(aggregator.category_counts(), snapshot.categories),
            counts_to_frame(aggregator.location_counts(), snapshot.locations),
        ], ignore_index=True)
        if args.out:
            save_frame(df, args.out)
            logger.info(f">>> Saved {len(df)} count rows to {args.out}")
        else:
            print(df.to_string(index=False))
        return 0

    result = apply(
        snapshot.listings,
        query=args.query,
        category_selection=category,
        location_selection=location,
        sort_key=args.sort,
        page=args.page,
        page_size=args.page_size,
        category_tree=snapshot.categories,
        min_price=args.min_price,
        max_price=args.max_price,
    )
    logger.info(f">>> {result.total_count} matching listings, page {result.page}/{result.page_count}")

    if args.out:
        matching = filter_listings(
            snapshot.listings,
            query=args.query,
            category_selection=category,
            location_selection=location,
            category_tree=snapshot.categories,
            min_price=args.min_price,
            max_price=args.max_price,
        )
        save_output_rows(sort_listings(matching, args.sort), args.out, logger)
    else:
        for listing in result.items:
            price = f"{listing.price:.0f}" if listing.price is not None else "-"
            print(f"{listing.id}\t{price}\t{listing.title}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
