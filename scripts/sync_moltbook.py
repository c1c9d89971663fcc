#!/usr/bin/env python3
"""
Moltbook Sync Script

Runs the Moltbook engagement sync once from the command line, outside the
API. Useful for manual refreshes and for schedulers that run commands
rather than HTTP requests.

Usage:
    python sync_moltbook.py
    python sync_moltbook.py --limit 50 --verbose
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import Settings
from repositories.client import create_supabase_client
from services.hype_sync_service import SYNC_SEARCH_LIMIT, SyncReport, sync_all_products
from services.moltbook_client import MoltbookClient


def print_report(report: SyncReport) -> None:
    print()
    print("=" * 60)
    print("SYNC SUMMARY")
    print("=" * 60)
    print(f"Products synced: {report.synced}")
    print(f"Products failed: {len(report.failed)}")

    if report.failed:
        print()
        print("Errors:")
        for message in report.error_messages:
            print(f"  - {message}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = argparse.ArgumentParser(
        description="Sync Moltbook engagement and hype scores for active products",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=SYNC_SEARCH_LIMIT,
        help=f"Maximum posts fetched per product (default: {SYNC_SEARCH_LIMIT})",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Log per-product progress",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = Settings.from_env()
    except RuntimeError as e:
        print(f"✗ {e}", file=sys.stderr)
        return 2

    client = create_supabase_client(settings)

    with MoltbookClient(settings.moltbook_api_url, settings.moltbook_api_key) as moltbook:
        if moltbook.is_mock:
            print("⚠ MOLTBOOK_API_KEY not set; using mock engagement data")

        try:
            report = sync_all_products(client, moltbook, limit=args.limit)
        except Exception as e:
            print(f"✗ Failed to sync Moltbook activity: {e}", file=sys.stderr)
            return 1

    print_report(report)
    return 1 if report.failed else 0


if __name__ == "__main__":
    sys.exit(main())
