"""Wire-level field serialization for proxy handshakes.

Every multi-byte field is written with an explicit network (big-endian)
byte order through ``struct``. Requests are assembled in a ``WireBuffer``,
a growable buffer that checks each write against its remaining capacity.
"""

import struct
from typing import Final

U8: Final = struct.Struct("!B")
U16: Final = struct.Struct("!H")

MAX_U8: Final = 0xFF
MAX_U16: Final = 0xFFFF


def pack_u8(value: int) -> bytes:
    """Serialize a single unsigned byte."""
    if not 0 <= value <= MAX_U8:
        raise ValueError(f"Value {value} does not fit in one byte")
    return U8.pack(value)


def pack_u16(value: int) -> bytes:
    """Serialize an unsigned 16-bit value in network byte order."""
    if not 0 <= value <= MAX_U16:
        raise ValueError(f"Value {value} does not fit in 16 bits")
    return U16.pack(value)


def unpack_u16(data: bytes) -> int:
    """Read an unsigned 16-bit value in network byte order."""
    return U16.unpack(data)[0]


class WireBuffer:
    """Growable byte buffer with a hard capacity limit.

    Args:
        capacity: Maximum number of bytes the buffer may hold
    """

    def __init__(self, capacity: int) -> None:
        self.capacity = capacity
        self._data = bytearray()

    @property
    def remaining(self) -> int:
        return self.capacity - len(self._data)

    def write(self, data: bytes) -> "WireBuffer":
        """Append raw bytes, refusing to grow past the capacity.

        Raises:
            ValueError: If the write would exceed the capacity
        """
        if len(data) > self.remaining:
            raise ValueError(
                f"Request overflow: {len(data)} bytes with {self.remaining} remaining"
            )
        self._data += data
        return self

    def write_u8(self, value: int) -> "WireBuffer":
        return self.write(pack_u8(value))

    def write_u16(self, value: int) -> "WireBuffer":
        return self.write(pack_u16(value))

    def write_prefixed(self, data: bytes) -> "WireBuffer":
        """Append a one-byte length prefix followed by ``data``."""
        return self.write_u8(len(data)).write(data)

    def __len__(self) -> int:
        return len(self._data)

    def __bytes__(self) -> bytes:
        return bytes(self._data)
