from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, TypeVar
import logging
import math

from .exceptions import ChildTypeMismatchError, UnexpectedValueError, WKBError
from .geometry import Coordinates, DecodeResult, TaggedGeometry
from .reader import Reader, ReaderInput
from .type_codes import (
    KIND_NAMES,
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
    WKB_FLAG_SRID,
    WKB_TYPE_CIRCULARSTRING,
    WKB_TYPE_COMPOUNDCURVE,
    WKB_TYPE_CURVEPOLYGON,
    WKB_TYPE_LINESTRING,
    WKB_TYPE_POINT,
    WKB_TYPE_POLYGON,
    dimension_bits,
    dimension_suffix,
    format_bits,
    has_flag,
    kind_name,
    primitive_kind,
    with_dimension,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Decode session
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class _Context:
    """Per-stream state fixed by the top-level type word and shared by every child."""
    type_word: int
    kind: str
    dimension_bits: Optional[int]
    dimension: str
    point_size: int


def _with_position(reader: Reader, fn: Callable[[], T]) -> T:
    """Run `fn`, re-raising any WKB error with the reader's failing offset attached."""
    try:
        return fn()
    except WKBError as e:
        raise e.with_position(reader.get_last_position()) from e


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------

class Parser:
    """
    Recursive-descent decoder for WKB / EWKB geometries.

    A Parser may be reused for several inputs one after the other; it must
    not be shared between threads since the underlying Reader is a cursor.
    """

    def __init__(self, input: Optional[ReaderInput] = None):
        self._reader = Reader()
        if input is not None:
            self._reader.load(input)

        self._handlers: Dict[str, Callable[[_Context], object]] = {
            TYPE_POINT: self._point,
            TYPE_LINESTRING: self._line_string,
            TYPE_POLYGON: self._polygon,
            TYPE_MULTIPOINT: self._multi_point,
            TYPE_MULTILINESTRING: self._multi_line_string,
            TYPE_MULTIPOLYGON: self._multi_polygon,
            TYPE_GEOMETRYCOLLECTION: self._geometry_collection,
            TYPE_CIRCULARSTRING: self._circular_string,
            TYPE_COMPOUNDCURVE: self._compound_curve,
            TYPE_CURVEPOLYGON: self._curve_polygon,
            TYPE_MULTICURVE: self._multi_curve,
            TYPE_MULTISURFACE: self._multi_surface,
            TYPE_POLYHEDRALSURFACE: self._polyhedral_surface,
        }

    def parse(self, input: Optional[ReaderInput] = None) -> DecodeResult:
        if input is not None:
            self._reader.load(input)
        return _with_position(self._reader, self._read_geometry)

    # ---------------- top level ---------------- #
    def _read_geometry(self) -> DecodeResult:
        self._reader.read_byte_order()
        type_word = self._reader.read_unsigned_long()

        srid = None
        if has_flag(type_word, WKB_FLAG_SRID):
            srid = self._reader.read_long()
            logger.debug("EWKB SRID %d", srid)

        kind = kind_name(type_word)
        bits = dimension_bits(type_word)
        dimension = dimension_suffix(bits, kind)
        ctx = _Context(
            type_word=type_word,
            kind=kind,
            dimension_bits=bits,
            dimension=dimension,
            point_size=2 + len(dimension),
        )
        logger.debug("Decoding %s%s (type word 0x%08X)", kind, dimension, type_word)

        value = self._handlers[kind](ctx)
        return DecodeResult(kind=kind, srid=srid, value=value, dimension=dimension)

    # ---------------- stream helpers ---------------- #
    def _read_count(self) -> int:
        count = self._reader.read_long()
        if count < 0:
            raise UnexpectedValueError(f"Invalid element count {count}")
        return count

    def _read_child_type(self) -> int:
        self._reader.read_byte_order()
        return self._reader.read_unsigned_long()

    def _expect_child(self, ctx: _Context, word: int, allowed: Sequence[int]) -> int:
        """Return the allowed primitive kind `word` matches under the stream's dimension."""
        for kind in allowed:
            if word == with_dimension(kind, ctx.dimension_bits):
                return kind
        raise _child_mismatch(ctx, word, allowed)

    # ---------------- coordinates ---------------- #
    def _point(self, ctx: _Context) -> Coordinates:
        # NaN ordinates are dropped; POINT EMPTY (all NaN) becomes []
        return [c for c in self._reader.read_floats(ctx.point_size) if not math.isnan(c)]

    def _points(self, ctx: _Context, count: int) -> List[Coordinates]:
        return [self._point(ctx) for _ in range(count)]

    def _linear_rings(self, ctx: _Context, count: int) -> List[List[Coordinates]]:
        return [self._points(ctx, self._read_count()) for _ in range(count)]

    # ---------------- simple kinds ---------------- #
    def _line_string(self, ctx: _Context) -> List[Coordinates]:
        return self._points(ctx, self._read_count())

    def _circular_string(self, ctx: _Context) -> List[Coordinates]:
        return self._points(ctx, self._read_count())

    def _polygon(self, ctx: _Context) -> List[List[Coordinates]]:
        return self._linear_rings(ctx, self._read_count())

    # ---------------- homogeneous collections ---------------- #
    def _read_items(self, ctx: _Context, child: int, read: Callable[[_Context], T]) -> List[T]:
        values = []
        for _ in range(self._read_count()):
            word = self._read_child_type()
            self._expect_child(ctx, word, (child,))
            values.append(read(ctx))
        return values

    def _multi_point(self, ctx: _Context) -> List[Coordinates]:
        return self._read_items(ctx, WKB_TYPE_POINT, self._point)

    def _multi_line_string(self, ctx: _Context) -> List[List[Coordinates]]:
        return self._read_items(ctx, WKB_TYPE_LINESTRING, self._line_string)

    def _multi_polygon(self, ctx: _Context) -> List[List[List[Coordinates]]]:
        return self._read_items(ctx, WKB_TYPE_POLYGON, self._polygon)

    # ---------------- heterogeneous collections ---------------- #
    def _read_tagged(
        self,
        ctx: _Context,
        readers: Dict[int, Callable[[_Context], object]],
    ) -> List[TaggedGeometry]:
        values = []
        for _ in range(self._read_count()):
            word = self._read_child_type()
            kind = self._expect_child(ctx, word, tuple(readers))
            values.append(TaggedGeometry(KIND_NAMES[kind], readers[kind](ctx)))
        return values

    def _compound_curve(self, ctx: _Context) -> List[TaggedGeometry]:
        return self._read_tagged(ctx, {
            WKB_TYPE_LINESTRING: self._line_string,
            WKB_TYPE_CIRCULARSTRING: self._circular_string,
        })

    def _curve_polygon(self, ctx: _Context) -> List[TaggedGeometry]:
        return self._read_tagged(ctx, self._curve_readers())

    def _multi_curve(self, ctx: _Context) -> List[TaggedGeometry]:
        return self._read_tagged(ctx, self._curve_readers())

    def _curve_readers(self) -> Dict[int, Callable[[_Context], object]]:
        return {
            WKB_TYPE_LINESTRING: self._line_string,
            WKB_TYPE_CIRCULARSTRING: self._circular_string,
            WKB_TYPE_COMPOUNDCURVE: self._compound_curve,
        }

    def _multi_surface(self, ctx: _Context) -> List[TaggedGeometry]:
        return self._read_tagged(ctx, {
            WKB_TYPE_POLYGON: self._polygon,
            WKB_TYPE_CURVEPOLYGON: self._curve_polygon,
        })

    def _polyhedral_surface(self, ctx: _Context) -> List[TaggedGeometry]:
        return self._read_tagged(ctx, {
            WKB_TYPE_POLYGON: self._polygon,
        })

    def _geometry_collection(self, ctx: _Context) -> List[TaggedGeometry]:
        values = []
        for _ in range(self._read_count()):
            # the child's own dimension bits are not checked: it inherits ctx
            name = kind_name(self._read_child_type())
            values.append(TaggedGeometry(name, self._handlers[name](ctx)))
        return values


def _child_mismatch(ctx: _Context, word: int, allowed: Sequence[int]) -> ChildTypeMismatchError:
    # errors name the top-level kind, not the nested container that tripped
    child = kind_name(word)
    child_bits = dimension_bits(word)
    expected = [KIND_NAMES[k] for k in allowed]

    body = f" {child} with dimensions {format_bits(child_bits)} in {ctx.kind}, expected "
    if primitive_kind(word) not in allowed:
        if len(expected) == 1:
            names = expected[0]
        else:
            names = ", ".join(expected[:-1]) + " or " + expected[-1]
        message = "Unexpected" + body + names + " with "
    else:
        message = "Bad" + body
    message += f"dimensions {format_bits(ctx.dimension_bits)}"

    return ChildTypeMismatchError(
        message,
        child_kind=child,
        child_dimensions=child_bits,
        container_kind=ctx.kind,
        expected_kinds=expected,
        expected_dimensions=ctx.dimension_bits,
    )


def decode(input: ReaderInput) -> DecodeResult:
    """Decode one WKB / EWKB geometry from bytes or hex text."""
    return Parser(input).parse()
