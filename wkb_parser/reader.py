import binascii
import struct
from typing import List, Optional, Union

from .exceptions import InvalidArgumentError, UnexpectedValueError

WKB_XDR = 0  # big endian
WKB_NDR = 1  # little endian

_ENDIAN_PREFIX = {WKB_XDR: ">", WKB_NDR: "<"}

ReaderInput = Union[bytes, bytearray, memoryview, str]


class Reader:
    """
    Cursor over a WKB buffer.

    Accepts raw bytes or the hex text form (with an optional ``x`` / ``0x``
    prefix). Multi-byte values are unpacked with the byte order set by the
    most recent :meth:`read_byte_order` call.
    """

    def __init__(self, input: Optional[ReaderInput] = None):
        self._data = b""
        self._position = 0
        self._previous = 0
        self._byte_order: Optional[int] = None
        if input is not None:
            self.load(input)

    # ---------------- input ---------------- #
    def load(self, input: ReaderInput) -> None:
        self._data = _to_bytes(input)
        self._position = 0
        self._previous = 0
        self._byte_order = None

    def get_current_position(self) -> int:
        return self._position

    def get_last_position(self) -> int:
        return self._position - self._previous

    @property
    def byte_order(self) -> Optional[int]:
        return self._byte_order

    # ---------------- primitives ---------------- #
    def read_byte_order(self) -> int:
        (byte_order,) = self._unpack("B", byte_order_required=False)
        if byte_order >> 1:
            raise UnexpectedValueError(f'Invalid byte order "{byte_order}"')
        self._byte_order = byte_order
        return byte_order

    def read_long(self) -> int:
        (value,) = self._unpack("i")
        return value

    def read_unsigned_long(self) -> int:
        (value,) = self._unpack("I")
        return value

    def read_float(self) -> float:
        (value,) = self._unpack("d")
        return value

    def read_floats(self, count: int) -> List[float]:
        if count <= 0:
            return []
        return list(self._unpack("%dd" % count))

    # ---------------- internal helpers ---------------- #
    def _unpack(self, fmt: str, byte_order_required: bool = True) -> tuple:
        if byte_order_required:
            if self._byte_order is None:
                raise UnexpectedValueError('Invalid byte order "unset"')
            fmt = _ENDIAN_PREFIX[self._byte_order] + fmt
        else:
            fmt = "=" + fmt

        size = struct.calcsize(fmt)
        remaining = len(self._data) - self._position
        if size > remaining:
            # blame the read that fell short, not the one before it
            self._previous = 0
            raise UnexpectedValueError(
                f"Not enough input: need {size} bytes but only {remaining} remain"
            )

        values = struct.unpack_from(fmt, self._data, self._position)
        self._previous = size
        self._position += size
        return values


def _to_bytes(input: ReaderInput) -> bytes:
    if isinstance(input, (bytearray, memoryview)):
        input = bytes(input)

    if isinstance(input, bytes):
        if not input:
            raise InvalidArgumentError("No input data to read")
        if input[0] < 0x20:
            return input
        # ASCII hex delivered as bytes
        try:
            input = input.decode("ascii")
        except UnicodeDecodeError:
            raise InvalidArgumentError("Binary input must start with a byte order marker") from None

    if not isinstance(input, str):
        raise InvalidArgumentError(
            f"Expected bytes or a hex string, got {type(input).__name__}"
        )

    text = input.strip()
    if not text:
        raise InvalidArgumentError("No input data to read")

    # drop "x", "0x", "X", "0X" prefixes
    marker = text.lower().find("x")
    if marker != -1:
        text = text[marker + 1:]

    try:
        data = binascii.unhexlify(text)
    except (binascii.Error, ValueError) as e:
        raise InvalidArgumentError(f"Input is not valid hex: {e}") from e
    if not data:
        raise InvalidArgumentError("No input data to read")
    return data
