from typing import Any, Iterable, List

from shapely.geometry import (
    Point,
    LineString,
    Polygon,
    MultiPoint,
    MultiLineString,
    MultiPolygon,
    GeometryCollection,
)
from shapely.geometry.base import BaseGeometry

from .exceptions import UnsupportedGeometryError
from .geometry import Coordinates, DecodeResult
from .type_codes import (
    TYPE_CIRCULARSTRING,
    TYPE_COMPOUNDCURVE,
    TYPE_CURVEPOLYGON,
    TYPE_GEOMETRYCOLLECTION,
    TYPE_LINESTRING,
    TYPE_MULTICURVE,
    TYPE_MULTILINESTRING,
    TYPE_MULTIPOINT,
    TYPE_MULTIPOLYGON,
    TYPE_MULTISURFACE,
    TYPE_POINT,
    TYPE_POLYGON,
    TYPE_POLYHEDRALSURFACE,
)

_CURVE_KINDS = (TYPE_CIRCULARSTRING, TYPE_COMPOUNDCURVE, TYPE_CURVEPOLYGON, TYPE_MULTICURVE, TYPE_MULTISURFACE)

# kinds holding untagged items, mapped to the kind of those items
_CHILD_KIND = {
    TYPE_LINESTRING: TYPE_POINT,
    TYPE_CIRCULARSTRING: TYPE_POINT,
    TYPE_MULTIPOINT: TYPE_POINT,
    TYPE_POLYGON: TYPE_LINESTRING,
    TYPE_MULTILINESTRING: TYPE_LINESTRING,
    TYPE_MULTIPOLYGON: TYPE_POLYGON,
}


def _xy_or_xyz(coords: Coordinates, dimension: str) -> Coordinates:
    # shapely has no M ordinate: keep Z, drop M
    if dimension == "M":
        return coords[:2]
    if dimension == "ZM":
        return coords[:3]
    return coords


def _polygon(rings: List[List[Coordinates]], dimension: str) -> Polygon:
    if not rings:
        return Polygon()
    shell, *holes = [[_xy_or_xyz(c, dimension) for c in ring] for ring in rings]
    return Polygon(shell, holes)


def _build(kind: str, value: Any, dimension: str) -> BaseGeometry:
    if kind in _CURVE_KINDS:
        raise UnsupportedGeometryError(f"{kind} has no shapely equivalent")

    if kind == TYPE_POINT:
        return Point(_xy_or_xyz(value, dimension)) if value else Point()
    if kind == TYPE_LINESTRING:
        return LineString([_xy_or_xyz(c, dimension) for c in value])
    if kind == TYPE_POLYGON:
        return _polygon(value, dimension)
    if kind == TYPE_MULTIPOINT:
        return MultiPoint([_xy_or_xyz(c, dimension) for c in value if c])
    if kind == TYPE_MULTILINESTRING:
        return MultiLineString([[_xy_or_xyz(c, dimension) for c in line] for line in value])
    if kind == TYPE_MULTIPOLYGON:
        return MultiPolygon([_polygon(p, dimension) for p in value])
    if kind == TYPE_POLYHEDRALSURFACE:
        return MultiPolygon([_polygon(face.value, dimension) for face in value])
    if kind == TYPE_GEOMETRYCOLLECTION:
        return GeometryCollection([_build(item.kind, item.value, dimension) for item in value])

    raise UnsupportedGeometryError(f"{kind} has no shapely equivalent")


def to_shapely(result: DecodeResult) -> BaseGeometry:
    """
    Convert a decoded geometry into its shapely counterpart.

    M ordinates are dropped (shapely stores X, Y and optionally Z).
    POLYHEDRALSURFACE becomes a MultiPolygon of its faces; curve kinds raise
    UnsupportedGeometryError.
    """
    return _build(result.kind, result.value, result.dimension)


def iter_vertices(kind: str, value: Any) -> Iterable[Coordinates]:
    """Yield every coordinate tuple of a decoded value, whatever its nesting."""
    if kind == TYPE_POINT:
        if value:
            yield value
        return
    child = _CHILD_KIND.get(kind)
    for item in value:
        if child is None:
            yield from iter_vertices(item.kind, item.value)
        else:
            yield from iter_vertices(child, item)
