from typing import Optional, Sequence


class WKBError(Exception):
    """Base class for every error raised while reading WKB/EWKB input."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    def with_position(self, position: int) -> "WKBError":
        """
        Return a copy of this error (same class, same structured fields) whose
        message ends with the byte offset at which decoding failed.
        """
        clone = self.__class__.__new__(self.__class__)
        clone.__dict__.update(self.__dict__)
        clone.message = f"{self.message} at byte {position}"
        clone.position = position
        clone.args = (clone.message,)
        return clone


class InvalidArgumentError(WKBError, ValueError):
    """Input handed to the reader has the wrong shape (type, emptiness, hex)."""


class UnexpectedValueError(WKBError, ValueError):
    """The byte stream holds a value the decoder cannot accept."""


class ChildTypeMismatchError(UnexpectedValueError):
    def __init__(
        self,
        message: str,
        child_kind: str,
        child_dimensions: Optional[int],
        container_kind: str,
        expected_kinds: Sequence[str],
        expected_dimensions: Optional[int],
    ):
        super().__init__(message)
        self.child_kind = child_kind
        self.child_dimensions = child_dimensions
        self.container_kind = container_kind
        self.expected_kinds = tuple(expected_kinds)
        self.expected_dimensions = expected_dimensions


class UnsupportedGeometryError(WKBError, NotImplementedError):
    """Decoded geometry has no shapely counterpart (curves)."""
