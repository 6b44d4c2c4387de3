from dataclasses import dataclass
from typing import Iterable, Iterator, Optional, Tuple
import json
import logging

import pyarrow as pa
import pyarrow.parquet as pq

from .exceptions import WKBError
from .geometry import DecodeResult
from .parser import Parser

logger = logging.getLogger(__name__)


# ------------------------- Config ------------------------- #
@dataclass
class ScanConfig:
    geom_col: str = "geometry"
    # strict: the first undecodable row raises; otherwise it is logged and skipped
    strict: bool = True
    limit: Optional[int] = None


# ------------------------- Helpers ------------------------- #
def _load_geo_metadata(schema: pa.Schema) -> Optional[dict]:
    meta = dict(schema.metadata or {})
    raw = meta.get(b"geo")
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        logger.warning("Ignoring unreadable GeoParquet 'geo' metadata")
        return None


# ------------------------- GeoParquet source ------------------------- #
class GeoParquetSource:
    """
    Streams a GeoParquet file row group by row group and decodes its WKB
    geometry column with a single sequentially reused Parser.
    """

    def __init__(self, path: str):
        self.path = path
        self._pf = pq.ParquetFile(path)
        self._schema = self._pf.schema_arrow
        self._num_row_groups = self._pf.num_row_groups
        logger.info("GeoParquetSource opened %s with %d row groups", path, self._num_row_groups)

    def schema(self) -> pa.Schema:
        return self._schema

    def geo_metadata(self) -> Optional[dict]:
        return _load_geo_metadata(self._schema)

    def column_encoding(self, geom_col: str) -> Optional[str]:
        geo = self.geo_metadata() or {}
        return geo.get("columns", {}).get(geom_col, {}).get("encoding")

    def column_crs(self, geom_col: str):
        geo = self.geo_metadata() or {}
        return geo.get("columns", {}).get(geom_col, {}).get("crs")

    def iter_tables(self, columns: Optional[Iterable[str]] = None) -> Iterable[pa.Table]:
        cols = list(columns) if columns is not None else None
        for i in range(self._num_row_groups):
            logger.debug("Reading row group %d/%d", i, self._num_row_groups)
            yield self._pf.read_row_group(i, columns=cols)

    def iter_decoded(self, config: Optional[ScanConfig] = None) -> Iterator[Tuple[int, DecodeResult]]:
        """
        Yield (row_index, DecodeResult) for every non-null geometry.

        Row indices count across row groups, so they match the file's row
        numbering even when rows are skipped.
        """
        config = config or ScanConfig()
        if config.geom_col not in self._schema.names:
            raise ValueError(f"Missing geometry column '{config.geom_col}'")

        encoding = self.column_encoding(config.geom_col)
        if encoding is not None and encoding.upper() != "WKB":
            raise ValueError(f"Column '{config.geom_col}' is encoded as {encoding}, not WKB")

        parser = Parser()
        row = 0
        emitted = 0
        skipped = 0
        for table in self.iter_tables(columns=[config.geom_col]):
            for wkb in table[config.geom_col].to_pylist():
                index = row
                row += 1
                if wkb is None:
                    continue
                try:
                    result = parser.parse(wkb)
                except WKBError as e:
                    if config.strict:
                        raise
                    skipped += 1
                    logger.warning("Skipping row %d: %s", index, e)
                    continue

                yield index, result
                emitted += 1
                if config.limit is not None and emitted >= config.limit:
                    logger.info("Stopped after %d geometries (limit)", emitted)
                    return

        if skipped:
            logger.warning("Skipped %d undecodable geometries in %s", skipped, self.path)
        logger.info("Decoded %d geometries from %s", emitted, self.path)
