from collections import Counter
from typing import Iterable, Optional

import numpy as np

from .geometry import DecodeResult
from .shapes import iter_vertices


class GeometryStatsCollector:
    """
    Running summary of a decoded geometry column: how many rows of each kind,
    dimension and SRID, the vertex count and the XY bounding box.
    """

    def __init__(self):
        self.count = 0
        self.empty = 0
        self.kinds = Counter()
        self.dimensions = Counter()
        self.srids = Counter()
        self.total_points = 0
        self._mins: Optional[np.ndarray] = None
        self._maxs: Optional[np.ndarray] = None

    def update(self, results: Iterable[DecodeResult]):
        for result in results:
            self.add(result)

    def add(self, result: DecodeResult):
        self.count += 1
        self.kinds[result.kind] += 1
        self.dimensions[result.dimension or "XY"] += 1
        self.srids[result.srid] += 1

        xy = [v[:2] for v in iter_vertices(result.kind, result.value) if len(v) >= 2]
        if not xy:
            self.empty += 1
            return

        self.total_points += len(xy)
        arr = np.asarray(xy, dtype=float)
        mins = np.nanmin(arr, axis=0)
        maxs = np.nanmax(arr, axis=0)
        if self._mins is None:
            self._mins, self._maxs = mins, maxs
        else:
            self._mins = np.fmin(self._mins, mins)
            self._maxs = np.fmax(self._maxs, maxs)

    @property
    def mbr(self):
        if self._mins is None:
            return [None, None, None, None]
        return [float(self._mins[0]), float(self._mins[1]), float(self._maxs[0]), float(self._maxs[1])]

    def finalize(self) -> dict:
        return {
            "count": self.count,
            "empty": self.empty,
            "geom_types": dict(self.kinds),
            "dimensions": dict(self.dimensions),
            # JSON object keys must be strings
            "srids": {("none" if k is None else str(k)): v for k, v in self.srids.items()},
            "total_points": self.total_points,
            "mbr": self.mbr,
        }
