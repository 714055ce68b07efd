#!/usr/bin/env python3
"""
Indicator Resolver

Resolves catalog indicators against Eurostat once and stores the results.

Usage:
    python scripts/resolve_indicators.py                       # Resolve every indicator
    python scripts/resolve_indicators.py --indicator GDP OADr  # Resolve specific indicators
    python scripts/resolve_indicators.py --snapshot            # Snapshot the current store
    python scripts/resolve_indicators.py --list                # Show the catalog
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from regiodata.config import get_settings
from regiodata.exceptions import RegioDataError
from regiodata.providers.eurostat import EurostatProvider
from regiodata.services.http_pool import close_http_pool
from regiodata.services.indicator_catalog import get_indicator_definitions
from regiodata.services.indicator_store import get_indicator_store
from regiodata.services.resolver import IndicatorResolver, run_resolution

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def print_catalog() -> None:
    definitions = get_indicator_definitions()
    print(f"\n=== Indicator Catalog ({len(definitions)} indicators) ===\n")
    for name, definition in definitions.items():
        kind = f"composite/{definition.compose}" if definition.composite else "direct"
        print(f"  {name:12} {definition.type:15} {definition.endpoint:20} {kind:30} {definition.description}")


async def main() -> int:
    parser = argparse.ArgumentParser(description="Resolve Eurostat regional indicators")
    parser.add_argument("--indicator", "-i", nargs="+", help="Specific indicator(s) to resolve")
    parser.add_argument("--snapshot", "-s", action="store_true", help="Take a snapshot of the current store")
    parser.add_argument("--list", "-l", action="store_true", help="List catalog indicators")
    args = parser.parse_args()

    if args.list:
        print_catalog()
        return 0

    store = get_indicator_store()

    if args.snapshot:
        snapshot_id = store.take_snapshot()
        print(f"\nSnapshot {snapshot_id} stored in {store.db_path}")
        return 0

    resolver = IndicatorResolver(EurostatProvider(), store)
    try:
        report = await run_resolution(resolver, args.indicator)
    except RegioDataError as e:
        logger.error(e.message)
        return 2
    finally:
        await close_http_pool()
        store.close()

    print("\n=== Resolution Results ===\n")
    print(f"  {'resolved':10} {len(report.resolved):>5}")
    print(f"  {'failed':10} {len(report.failed):>5}")
    for name, error in sorted(report.failed.items()):
        print(f"    {name:12} {error['error']}: {error['message']}")
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
