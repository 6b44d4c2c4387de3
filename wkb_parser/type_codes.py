"""
Type-word resolution for WKB / EWKB.

A geometry type word carries the primitive kind plus, optionally, the
dimensionality and the SRID flag. Two producers disagree on how:

  - ISO SQL/MM adds 1000 (Z), 2000 (M) or 3000 (ZM) to the kind code.
  - PostGIS EWKB sets high bits (Z=0x80000000, M=0x40000000,
    SRID=0x20000000) and keeps the kind in the low byte.

Everything here is plain integer arithmetic; nothing touches the stream.
"""
from typing import Dict, Optional

from .exceptions import UnexpectedValueError

# ------------------------- Kind codes ------------------------- #
WKB_TYPE_GEOMETRY = 0x00000000
WKB_TYPE_POINT = 0x00000001
WKB_TYPE_LINESTRING = 0x00000002
WKB_TYPE_POLYGON = 0x00000003
WKB_TYPE_MULTIPOINT = 0x00000004
WKB_TYPE_MULTILINESTRING = 0x00000005
WKB_TYPE_MULTIPOLYGON = 0x00000006
WKB_TYPE_GEOMETRYCOLLECTION = 0x00000007
WKB_TYPE_CIRCULARSTRING = 0x00000008
WKB_TYPE_COMPOUNDCURVE = 0x00000009
WKB_TYPE_CURVEPOLYGON = 0x0000000A
WKB_TYPE_MULTICURVE = 0x0000000B
WKB_TYPE_MULTISURFACE = 0x0000000C
WKB_TYPE_CURVE = 0x0000000D
WKB_TYPE_SURFACE = 0x0000000E
WKB_TYPE_POLYHEDRALSURFACE = 0x0000000F
WKB_TYPE_TIN = 0x00000010
WKB_TYPE_TRIANGLE = 0x00000011

# ------------------------- Flags ------------------------- #
WKB_FLAG_SRID = 0x20000000
WKB_FLAG_M = 0x40000000
WKB_FLAG_Z = 0x80000000

# below this every word is a bare 2D kind code
_FLAGLESS_LIMIT = 0x20

# ------------------------- Names ------------------------- #
TYPE_POINT = "POINT"
TYPE_LINESTRING = "LINESTRING"
TYPE_POLYGON = "POLYGON"
TYPE_MULTIPOINT = "MULTIPOINT"
TYPE_MULTILINESTRING = "MULTILINESTRING"
TYPE_MULTIPOLYGON = "MULTIPOLYGON"
TYPE_GEOMETRYCOLLECTION = "GEOMETRYCOLLECTION"
TYPE_CIRCULARSTRING = "CIRCULARSTRING"
TYPE_COMPOUNDCURVE = "COMPOUNDCURVE"
TYPE_CURVEPOLYGON = "CURVEPOLYGON"
TYPE_MULTICURVE = "MULTICURVE"
TYPE_MULTISURFACE = "MULTISURFACE"
TYPE_POLYHEDRALSURFACE = "POLYHEDRALSURFACE"
TYPE_TIN = "TIN"
TYPE_TRIANGLE = "TRIANGLE"

# TIN and TRIANGLE are left out on purpose: streams declaring them are rejected.
KIND_NAMES: Dict[int, str] = {
    WKB_TYPE_POINT: TYPE_POINT,
    WKB_TYPE_LINESTRING: TYPE_LINESTRING,
    WKB_TYPE_POLYGON: TYPE_POLYGON,
    WKB_TYPE_MULTIPOINT: TYPE_MULTIPOINT,
    WKB_TYPE_MULTILINESTRING: TYPE_MULTILINESTRING,
    WKB_TYPE_MULTIPOLYGON: TYPE_MULTIPOLYGON,
    WKB_TYPE_GEOMETRYCOLLECTION: TYPE_GEOMETRYCOLLECTION,
    WKB_TYPE_CIRCULARSTRING: TYPE_CIRCULARSTRING,
    WKB_TYPE_COMPOUNDCURVE: TYPE_COMPOUNDCURVE,
    WKB_TYPE_CURVEPOLYGON: TYPE_CURVEPOLYGON,
    WKB_TYPE_MULTICURVE: TYPE_MULTICURVE,
    WKB_TYPE_MULTISURFACE: TYPE_MULTISURFACE,
    WKB_TYPE_POLYHEDRALSURFACE: TYPE_POLYHEDRALSURFACE,
}

_SUFFIXES: Dict[int, str] = {
    1000: "Z",
    WKB_FLAG_Z: "Z",
    2000: "M",
    WKB_FLAG_M: "M",
    3000: "ZM",
    WKB_FLAG_Z | WKB_FLAG_M: "ZM",
}


def is_2d(word: Optional[int]) -> bool:
    return word is None or word < _FLAGLESS_LIMIT


def has_flag(word: int, flag: int) -> bool:
    return (word & flag) == flag


def primitive_kind(word: int) -> int:
    if is_2d(word):
        return word
    if word > 0xFFFF:
        return word & 0xFF
    return word % 1000


def dimension_bits(word: int) -> Optional[int]:
    """
    Dimension marker carried by `word`: None for 2D, the Z/M flag bits for
    EWKB words, or the thousands offset (1000/2000/3000) for ISO words.
    """
    if is_2d(word):
        return None
    if word & (WKB_FLAG_SRID | WKB_FLAG_M | WKB_FLAG_Z):
        return word & (WKB_FLAG_M | WKB_FLAG_Z)
    return word - (word % 1000)


def dimension_suffix(bits: Optional[int], kind: Optional[str] = None) -> str:
    if is_2d(bits):
        return ""
    try:
        return _SUFFIXES[bits]
    except KeyError:
        raise UnexpectedValueError(
            f"{kind or 'Geometry'} with unsupported dimensions {format_bits(bits)}"
        ) from None


def with_dimension(kind: int, bits: Optional[int]) -> int:
    """Type word a child of primitive `kind` carries under dimension `bits`."""
    if bits is None:
        return kind
    if bits & (WKB_FLAG_Z | WKB_FLAG_M):
        return kind | bits
    return kind + bits


def kind_name(word: int) -> str:
    try:
        return KIND_NAMES[primitive_kind(word)]
    except KeyError:
        raise UnexpectedValueError(f'Unsupported WKB type "{word}" (0x{word:x})') from None


def format_bits(bits: Optional[int]) -> str:
    bits = bits or 0
    return f"0x{bits:X} ({bits})"
