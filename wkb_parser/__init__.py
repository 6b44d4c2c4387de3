from .exceptions import (
    WKBError,
    InvalidArgumentError,
    UnexpectedValueError,
    ChildTypeMismatchError,
    UnsupportedGeometryError,
)
from .geometry import DecodeResult, TaggedGeometry
from .reader import Reader
from .parser import Parser, decode

__all__ = [
    "decode",
    "Parser",
    "Reader",
    "DecodeResult",
    "TaggedGeometry",
    "WKBError",
    "InvalidArgumentError",
    "UnexpectedValueError",
    "ChildTypeMismatchError",
    "UnsupportedGeometryError",
]
