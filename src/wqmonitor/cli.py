"""
Command line interface.

Usage:
    python -m wqmonitor [--year YEAR] [--search TEXT] [--fragment FRAGMENT]

Examples:
    python -m wqmonitor --year 2024
    python -m wqmonitor --search 石門
    python -m wqmonitor --fragment "2023/%E7%9F%B3%E9%96%80%E6%B0%B4%E5%BA%AB"
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import pandas as pd

from .classify import station_buckets
from .client import WaterQualityClient
from .config import SUPPORTED_YEARS, MonitorConfig
from .exceptions import WQMonitorError
from .loader import AggregationLoader
from .navigation import Navigator
from .ranking import latest_observation
from .store import ReservoirStore, history_summary, station_centroid


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wqmonitor",
        description="Show reservoir water-quality monitoring data by recency",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--year", choices=SUPPORTED_YEARS, help="Monitoring year to load"
    )
    parser.add_argument("--search", default="", help="Filter reservoirs by name")
    parser.add_argument(
        "--fragment", help="URL fragment to start from, e.g. '2024/<name>'"
    )
    parser.add_argument("--base-url", help="Root URL of the published data")
    parser.add_argument("--timeout", type=float, help="Request timeout in seconds")
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    return parser


def reservoir_table(store: ReservoirStore, reservoirs) -> pd.DataFrame:
    rows = []
    for reservoir in reservoirs:
        buckets = station_buckets(reservoir)
        usage = store.usage_for(reservoir.name)
        rows.append(
            {
                "reservoir": reservoir.name,
                "stations": len(reservoir.stations),
                "latest": latest_observation(reservoir),
                "ctsi": ",".join(sorted({b.value for b in buckets.values()})) or None,
                "usage_total": usage.total if usage and usage.has_usage else None,
            }
        )
    return pd.DataFrame(
        rows, columns=["reservoir", "stations", "latest", "ctsi", "usage_total"]
    )


async def run(args: argparse.Namespace) -> int:
    config = MonitorConfig.from_env(base_url=args.base_url, timeout=args.timeout)
    errors: List[Exception] = []

    async with WaterQualityClient(config) as client:
        navigator = Navigator(
            AggregationLoader(client, config), config, on_error=errors.append
        )
        fragment = args.fragment or (args.year or None)
        token = (fragment or "").lstrip("#").split("/", 1)[0]
        if token and not config.is_supported_year(token):
            print(
                f"Warning: year {token!r} is not available, showing {config.default_year}",
                file=sys.stderr,
            )
        await navigator.start(fragment)

        if errors or navigator.store is None:
            for error in errors:
                print(f"Error: {error}", file=sys.stderr)
            return 1

        store = navigator.store
        print(f"Year {store.year}: {len(store)} reservoirs")
        table = reservoir_table(store, navigator.visible(args.search))
        if table.empty:
            print("No matching reservoirs")
        else:
            print(table.to_string(index=False))

        if navigator.selected is not None:
            summary = history_summary(navigator.selected)
            print(f"\nSelected: {navigator.selected.name}")
            print(
                f"  {summary.count} observation dates, "
                f"{summary.earliest} to {summary.latest}"
            )
            centroid = station_centroid(navigator.selected)
            if centroid:
                print(f"  Centre: {centroid[0]:.5f}, {centroid[1]:.5f}")
        navigator.close()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 130
    except WQMonitorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
