"""Command-line entry point for the offline tile cache."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from domain.models import BoundingBox, GeoPoint
from services.offline_tiles import OfflineTileService
from shared.config import (
    OfflineTilesSettings,
    load_provider_config,
    resolve_data_dir,
    resolve_tile_dir,
)
from shared.logging_setup import setup_logging
from tiles.ledger import CacheLedger
from tiles.store import TileStore

logger = logging.getLogger(__name__)


def build_service(
    data_dir: Path | None = None,
    env_file: Path | None = None,
    settings: OfflineTilesSettings | None = None,
) -> OfflineTileService:
    """Wire the store, ledger and provider under ``data_dir``."""
    base = data_dir or resolve_data_dir()
    return OfflineTileService(
        store=TileStore(resolve_tile_dir(base)),
        ledger=CacheLedger(base),
        provider=load_provider_config(env_file),
        settings=settings,
    )


def _parse_zooms(raw: str) -> list[int]:
    try:
        return [int(z) for z in raw.split(',') if z.strip()]
    except ValueError:
        msg = f'invalid zoom list: {raw!r}'
        raise argparse.ArgumentTypeError(msg) from None


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Offline map tile cache - download and inspect cached tiles'
    )
    parser.add_argument('--data-dir', type=Path, default=None, help='Cache directory')
    parser.add_argument('--env-file', type=Path, default=None, help='.env file to load')
    parser.add_argument('--zooms', type=_parse_zooms, default=None, help='e.g. 13,14,15')
    parser.add_argument('--concurrency', type=int, default=None)
    parser.add_argument('-v', '--verbose', action='store_true')

    sub = parser.add_subparsers(dest='command', required=True)

    p_point = sub.add_parser('download', help='Cache the area around a point')
    p_point.add_argument('--lat', type=float, required=True)
    p_point.add_argument('--lon', type=float, required=True)
    p_point.add_argument('--area', type=float, default=None, help='Area in km²')
    p_point.add_argument('--force', action='store_true')

    p_bbox = sub.add_parser('bbox', help='Cache a bounding box')
    p_bbox.add_argument('north', type=float)
    p_bbox.add_argument('east', type=float)
    p_bbox.add_argument('south', type=float)
    p_bbox.add_argument('west', type=float)
    p_bbox.add_argument('--force', action='store_true')

    p_status = sub.add_parser('status', help='Show cache state for a point')
    p_status.add_argument('--lat', type=float, required=True)
    p_status.add_argument('--lon', type=float, required=True)

    sub.add_parser('clear', help='Delete all cached tiles and metadata')
    return parser


async def _run(args: argparse.Namespace) -> int:
    overrides: dict[str, object] = {}
    if args.zooms:
        overrides['zoom_levels'] = args.zooms
    if args.concurrency:
        overrides['concurrency'] = args.concurrency
    service = build_service(args.data_dir, args.env_file, OfflineTilesSettings(**overrides))

    if args.command == 'clear':
        service.clear_offline_tiles()
        print('Offline tiles cleared.')
        return 0

    if args.command == 'status':
        point = GeoPoint(latitude=args.lat, longitude=args.lon)
        stale = service.policy.should_refresh(point=point)
        covered = service.has_offline_coverage(point)
        print(f'coverage: {"yes" if covered else "no"}')
        print(f'refresh needed: {"yes" if stale else "no"}')
        print(f'tile template: {service.local_tile_template}')
        return 0

    if args.command == 'download':
        point = GeoPoint(latitude=args.lat, longitude=args.lon)
        outcome = await service.download_tiles_around_coords(
            point, force=args.force, area_sq_km=args.area
        )
    else:
        bounds = BoundingBox(
            north_east=GeoPoint(latitude=args.north, longitude=args.east),
            south_west=GeoPoint(latitude=args.south, longitude=args.west),
        )
        outcome = await service.download_tiles_for_bounds(bounds, force=args.force)

    if outcome.message:
        print(outcome.message)
    return 0 if outcome.ok else 1


def main(argv: list[str] | None = None) -> int:
    """Main application entry point."""
    args = _build_parser().parse_args(argv)
    setup_logging(
        (args.data_dir or resolve_data_dir()) / 'log',
        level=logging.DEBUG if args.verbose else logging.INFO,
    )
    try:
        return asyncio.run(_run(args))
    except ValueError as e:
        logger.error('Invalid input: %s', e)
        return 2


if __name__ == '__main__':
    sys.exit(main())
