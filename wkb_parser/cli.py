from __future__ import annotations
import argparse
import json
import logging
import sys
from time import perf_counter

import pyarrow as pa

from .datasource import GeoParquetSource, ScanConfig
from .exceptions import WKBError
from .parser import Parser
from .stats import GeometryStatsCollector

logger = logging.getLogger(__name__)


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid --limit: {raw}") from None
    if value <= 0:
        raise argparse.ArgumentTypeError(f"--limit must be positive, got {value}")
    return value


def _build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="wkb-parse",
        description="Decode WKB/EWKB geometries (hex strings or a GeoParquet column) to JSON.",
    )
    ap.add_argument("hex", nargs="*", help="WKB/EWKB hex strings, optionally prefixed with x or 0x.")

    # GeoParquet
    ap.add_argument("--parquet", help="GeoParquet file whose geometry column should be decoded.")
    ap.add_argument("--geom-col", default="geometry", help="Geometry column name (default: geometry).")
    ap.add_argument("--limit", type=_positive_int, default=None, help="Stop after N decoded geometries.")
    ap.add_argument("--stats", action="store_true",
                    help="Print a column summary (kinds, dimensions, SRIDs, MBR) instead of every geometry.")
    ap.add_argument("--lenient", action="store_true",
                    help="Log and skip undecodable rows instead of stopping at the first one.")

    ap.add_argument("--indent", type=int, default=None, help="JSON indent (default: compact).")
    ap.add_argument("--log-level", default="INFO")
    return ap


def _dump(obj, indent) -> None:
    sys.stdout.write(json.dumps(obj, indent=indent, separators=None if indent else (",", ":")))
    sys.stdout.write("\n")


def _decode_hex(values, indent) -> int:
    parser = Parser()
    for value in values:
        try:
            result = parser.parse(value)
        except WKBError as e:
            logger.error("Failed to decode %r: %s", value, e)
            return 1
        _dump(result.to_dict(), indent)
    return 0


def _decode_parquet(args) -> int:
    config = ScanConfig(geom_col=args.geom_col, strict=not args.lenient, limit=args.limit)
    collector = GeometryStatsCollector() if args.stats else None

    start = perf_counter()
    try:
        source = GeoParquetSource(args.parquet)
        for row, result in source.iter_decoded(config):
            if collector is not None:
                collector.add(result)
            else:
                _dump({"row": row, **result.to_dict()}, args.indent)
    except WKBError as e:
        logger.error("Failed to decode %s: %s", args.parquet, e)
        return 1
    except (OSError, ValueError, pa.ArrowException) as e:
        logger.error("Cannot read %s: %s", args.parquet, e)
        return 2

    if collector is not None:
        _dump(collector.finalize(), args.indent)
    logger.info("Finished %s in %.2f seconds", args.parquet, perf_counter() - start)
    return 0


def main(argv=None) -> int:
    ap = _build_parser()
    args = ap.parse_args(argv)

    level = getattr(logging, args.log_level.upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(relativeCreated).0fms] %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.parquet and args.hex:
        ap.error("pass either hex strings or --parquet, not both")
    if args.parquet:
        return _decode_parquet(args)
    if not args.hex:
        ap.error("nothing to decode: pass hex strings or --parquet")
    if args.stats or args.limit or args.lenient:
        logger.warning("--stats, --limit and --lenient only apply to --parquet")
    return _decode_hex(args.hex, args.indent)


if __name__ == "__main__":
    sys.exit(main())
