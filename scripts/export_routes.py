#!/usr/bin/env python3
"""Export catalog routes script.

Enumerates every canonical catalog path for static page generation and
writes one path per line.

Usage:
    python scripts/export_routes.py
    python scripts/export_routes.py --output routes.txt
    python scripts/export_routes.py --fixture catalog.json --timeout 120
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.catalog.deadline import Deadline
from storefront.catalog.repository import SqlCatalogStore
from storefront.catalog.service import CatalogService
from storefront.catalog.store import InMemoryCatalogStore
from storefront.infrastructure.config import get_settings
from storefront.infrastructure.database import Database
from storefront.infrastructure.logging_config import configure_logging


async def export_routes(fixture: str | None, timeout: float | None) -> list[str]:
    """Enumerate routes from a fixture file or the configured database.

    Args:
        fixture: Optional JSON fixture path; the database is used when absent.
        timeout: Overall deadline in seconds; defaults to
            ``CATALOG_ROUTES_TIMEOUT_SECONDS``.

    Returns:
        Catalog paths.
    """
    settings = get_settings()
    if timeout is None:
        timeout = settings.catalog_routes_timeout_seconds
    deadline = Deadline.start("get_all_routes", timeout)

    if fixture:
        store = InMemoryCatalogStore.from_json_file(fixture)
        service = CatalogService.from_settings(store, settings)
        return await service.get_all_routes(deadline=deadline)

    database = Database.from_settings(settings)
    try:
        store = SqlCatalogStore(
            database.session_factory,
            batch_size=settings.catalog_scan_batch_size,
        )
        service = CatalogService.from_settings(store, settings)
        return await service.get_all_routes(deadline=deadline)
    finally:
        await database.dispose()


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Export every catalog route, one per line",
    )
    parser.add_argument(
        "--output",
        help="File to write (default: stdout)",
    )
    parser.add_argument(
        "--fixture",
        help="Read the catalog from a JSON fixture instead of the database",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall deadline in seconds (default: CATALOG_ROUTES_TIMEOUT_SECONDS)",
    )
    args = parser.parse_args()

    settings = get_settings()
    configure_logging(settings.log_level, json=settings.log_json)

    routes = await export_routes(args.fixture, args.timeout)
    text = "\n".join(routes) + "\n"

    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        print(f"Wrote {len(routes)} routes to {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(text)


if __name__ == "__main__":
    asyncio.run(main())
