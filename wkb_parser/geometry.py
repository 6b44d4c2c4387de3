from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

Coordinates = List[float]


@dataclass(frozen=True)
class TaggedGeometry:
    """Child of a heterogeneous container: its kind name plus decoded value."""
    kind: str
    value: Any

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "value": _plain(self.value)}


@dataclass(frozen=True)
class DecodeResult:
    """
    Outcome of one top-level decode.

    `value` layout depends on `kind`:
      - POINT: [x, y, ...]  ([] for an empty point)
      - LINESTRING / CIRCULARSTRING / MULTIPOINT: list of points
      - POLYGON: list of rings (lists of points)
      - MULTILINESTRING: list of linestrings
      - MULTIPOLYGON: list of polygons
      - COMPOUNDCURVE, CURVEPOLYGON, MULTICURVE, MULTISURFACE,
        POLYHEDRALSURFACE, GEOMETRYCOLLECTION: list of TaggedGeometry
    """
    kind: str
    srid: Optional[int]
    value: Any
    dimension: str = ""

    @property
    def point_size(self) -> int:
        return 2 + len(self.dimension)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind,
            "srid": self.srid,
            "value": _plain(self.value),
            "dimension": self.dimension,
        }


def _plain(value: Any) -> Union[List[Any], Dict[str, Any], float]:
    if isinstance(value, TaggedGeometry):
        return value.to_dict()
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value
