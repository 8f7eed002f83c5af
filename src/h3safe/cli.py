"""
Command-line interface for h3-safe.

Provides the ``h3util`` commands for converting between points, polygons
and H3 indices.
"""

import argparse
import json
import logging
import sys
from dataclasses import replace
from typing import List, Optional

from .config import ENGINE_CHOICES, EngineConfig
from .engine import create_engine
from .errors import H3SafeError, InvalidGeometry
from .geometry import Polygon, feature_collection, polygon_feature, polygons_from_geojson
from .hierarchy import compact
from .index import H3Index
from .native import NativeEngine
from .region import cells_to_multi_polygon, polyfill
from .traversal import hex_range_distances, k_ring_distances

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s] %(levelname)s: %(message)s"


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="h3util",
        description="Convert between points, polygons and H3 indices",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )
    parser.add_argument(
        "--engine",
        choices=ENGINE_CHOICES,
        default=None,
        help="Native engine to use (default: H3SAFE_ENGINE or auto)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # point-to-index
    point_parser = subparsers.add_parser(
        "point-to-index",
        help="Get the index of the cell containing a point",
    )
    point_parser.add_argument("--longitude", type=float, required=True, help="Longitude")
    point_parser.add_argument("--latitude", type=float, required=True, help="Latitude")
    point_parser.add_argument("--resolution", type=int, required=True, help="Resolution (0-15)")

    # index-to-centroid
    centroid_parser = subparsers.add_parser(
        "index-to-centroid",
        help="Get the centroid of a cell as 'lng lat'",
    )
    centroid_parser.add_argument("--index", required=True, help="H3 index")

    # index-to-boundary
    boundary_parser = subparsers.add_parser(
        "index-to-boundary",
        help="Get a GeoJSON FeatureCollection of cell boundaries",
    )
    boundary_parser.add_argument("--index", nargs="+", required=True, help="H3 indices")

    # index-to-components
    components_parser = subparsers.add_parser(
        "index-to-components",
        help="Show resolution, base cell and other properties of a cell",
    )
    components_parser.add_argument("--index", required=True, help="H3 index")

    # index-to-k-ring / index-to-hex-range
    for name, text in (
        ("index-to-k-ring", "Cells within a grid distance of a cell"),
        ("index-to-hex-range", "Cells within a grid distance, failing near pentagons"),
    ):
        ring_parser = subparsers.add_parser(name, help=text)
        ring_parser.add_argument("--index", required=True, help="H3 index")
        ring_parser.add_argument("--distance", type=int, required=True, help="Grid distance k")
        ring_parser.add_argument(
            "--format",
            choices=["text", "geojson"],
            default="text",
            help="Output format (default: text)",
        )

    # cells-to-polygon
    outline_parser = subparsers.add_parser(
        "cells-to-polygon",
        help="Outline a set of cells as a GeoJSON FeatureCollection",
    )
    outline_parser.add_argument("--index", nargs="+", required=True, help="H3 indices")

    # boundary-to-index
    fill_parser = subparsers.add_parser(
        "boundary-to-index",
        help="Fill GeoJSON polygons read from stdin with cells",
    )
    fill_parser.add_argument("--resolution", type=int, required=True, help="Resolution (0-15)")
    fill_parser.add_argument(
        "--compact",
        action="store_true",
        help="Compact the filled cells before printing",
    )

    return parser


def configure_logging(verbosity: int) -> None:
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


def _engine_for(args: argparse.Namespace) -> NativeEngine:
    config = EngineConfig.from_env()
    if args.engine:
        config = replace(config, engine=args.engine)
    return create_engine(config)


def _parse_indices(texts: List[str], engine: NativeEngine) -> List[H3Index]:
    indices = []
    for text in texts:
        # allow a single space-separated argument
        for part in text.split():
            indices.append(H3Index.from_string(part, engine))
    return indices


def cmd_point_to_index(args: argparse.Namespace, engine: NativeEngine) -> int:
    """Handle the point-to-index command."""
    index = H3Index.from_point((args.longitude, args.latitude), args.resolution, engine)
    print(index)
    return 0


def cmd_index_to_centroid(args: argparse.Namespace, engine: NativeEngine) -> int:
    """Handle the index-to-centroid command."""
    point = H3Index.from_string(args.index, engine).to_point(engine)
    print(f"{point.lng} {point.lat}")
    return 0


def cmd_index_to_boundary(args: argparse.Namespace, engine: NativeEngine) -> int:
    """Handle the index-to-boundary command."""
    features = []
    for index in _parse_indices(args.index, engine):
        boundary = Polygon(index.to_boundary(engine))
        features.append(polygon_feature(boundary, {"h3index": str(index)}))
    print(json.dumps(feature_collection(features)))
    return 0


def cmd_index_to_components(args: argparse.Namespace, engine: NativeEngine) -> int:
    """Handle the index-to-components command."""
    index = H3Index.from_string(args.index, engine)
    print(f"index: {index}")
    print(f"resolution: {int(index.resolution(engine))}")
    print(f"base_cell: {index.base_cell(engine)}")
    print(f"pentagon: {str(index.is_pentagon(engine)).lower()}")
    print(f"class_iii: {str(index.is_res_class_iii(engine)).lower()}")
    print(f"faces: {' '.join(str(face) for face in index.icosahedron_faces(engine))}")
    return 0


def cmd_rings(args: argparse.Namespace, engine: NativeEngine) -> int:
    """Handle the index-to-k-ring and index-to-hex-range commands."""
    index = H3Index.from_string(args.index, engine)
    if args.command == "index-to-hex-range":
        rings = hex_range_distances(index, args.distance, engine)
    else:
        rings = k_ring_distances(index, args.distance, engine)

    if args.format == "geojson":
        features = [
            polygon_feature(
                Polygon(cell.to_boundary(engine)),
                {"h3index": str(cell), "distance": distance},
            )
            for distance, ring in enumerate(rings)
            for cell in ring
        ]
        print(json.dumps(feature_collection(features)))
    else:
        for distance, ring in enumerate(rings):
            for cell in ring:
                print(f"{cell} {distance}")
    return 0


def cmd_cells_to_polygon(args: argparse.Namespace, engine: NativeEngine) -> int:
    """Handle the cells-to-polygon command."""
    polygons = cells_to_multi_polygon(_parse_indices(args.index, engine), engine)
    print(json.dumps(feature_collection([polygon_feature(p) for p in polygons])))
    return 0


def cmd_boundary_to_index(args: argparse.Namespace, engine: NativeEngine) -> int:
    """Handle the boundary-to-index command."""
    try:
        data = json.load(sys.stdin)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidGeometry(f"stdin is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise InvalidGeometry("expected a GeoJSON object on stdin")

    cells = set()
    for polygon in polygons_from_geojson(data):
        cells.update(polyfill(polygon, args.resolution, engine))
    logger.info("filled %d cells", len(cells))

    result = compact(cells, engine) if args.compact else cells
    for cell in sorted(result):
        print(cell)
    return 0


COMMANDS = {
    "point-to-index": cmd_point_to_index,
    "index-to-centroid": cmd_index_to_centroid,
    "index-to-boundary": cmd_index_to_boundary,
    "index-to-components": cmd_index_to_components,
    "index-to-k-ring": cmd_rings,
    "index-to-hex-range": cmd_rings,
    "cells-to-polygon": cmd_cells_to_polygon,
    "boundary-to-index": cmd_boundary_to_index,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging(args.verbose)

    try:
        engine = _engine_for(args)
        return COMMANDS[args.command](args, engine)
    except H3SafeError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return exc.exit_code


if __name__ == "__main__":
    sys.exit(main())
