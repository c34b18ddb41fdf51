"""Network-byte-order integer parsing and serialisation."""

from __future__ import annotations

import enum

from sponge.buffer import Buffer, BytesLike


class ParseResult(enum.Enum):
    """Outcome of parsing a datagram, segment, frame or message."""

    NO_ERROR = 0
    BAD_CHECKSUM = 1
    PACKET_TOO_SHORT = 2
    WRONG_IP_VERSION = 3
    HEADER_TOO_SHORT = 4
    TRUNCATED_PACKET = 5
    UNSUPPORTED = 6


_NAMES = {
    ParseResult.NO_ERROR: "NoError",
    ParseResult.BAD_CHECKSUM: "BadChecksum",
    ParseResult.PACKET_TOO_SHORT: "PacketTooShort",
    ParseResult.WRONG_IP_VERSION: "WrongIPVersion",
    ParseResult.HEADER_TOO_SHORT: "HeaderTooShort",
    ParseResult.TRUNCATED_PACKET: "TruncatedPacket",
    ParseResult.UNSUPPORTED: "Unsupported",
}


def as_string(result: ParseResult) -> str:
    """A readable name for a ParseResult."""
    return _NAMES[result]


class NetParser:
    """Reads big-endian integers from the front of a Buffer.

    Running out of data sets ``result`` to PACKET_TOO_SHORT; once any error is
    recorded, further reads return 0 and consume nothing.
    """

    def __init__(self, buffer: Buffer | BytesLike) -> None:
        self._buffer = Buffer(buffer)
        self.result = ParseResult.NO_ERROR

    def buffer(self) -> Buffer:
        """The unparsed remainder."""
        return Buffer(self._buffer)

    def error(self) -> bool:
        """Whether an error has been recorded."""
        return self.result is not ParseResult.NO_ERROR

    def _check_size(self, size: int) -> None:
        if size > len(self._buffer):
            self.result = ParseResult.PACKET_TOO_SHORT

    def _parse_int(self, width: int) -> int:
        self._check_size(width)
        if self.error():
            return 0
        value = int.from_bytes(bytes(self._buffer.at(i) for i in range(width)), "big")
        self._buffer.remove_prefix(width)
        return value

    def u32(self) -> int:
        """Parse a 32-bit unsigned integer."""
        return self._parse_int(4)

    def u16(self) -> int:
        """Parse a 16-bit unsigned integer."""
        return self._parse_int(2)

    def u8(self) -> int:
        """Parse an 8-bit unsigned integer."""
        return self._parse_int(1)

    def remove_prefix(self, n: int) -> None:
        """Skip ``n`` bytes, recording an error if there are not enough."""
        self._check_size(n)
        if self.error():
            return
        self._buffer.remove_prefix(n)


class NetUnparser:
    """Appends big-endian integers to a bytearray, truncating to the field width."""

    @staticmethod
    def _unparse_int(out: bytearray, val: int, width: int) -> None:
        out.extend((val & ((1 << (8 * width)) - 1)).to_bytes(width, "big"))

    @staticmethod
    def u32(out: bytearray, val: int) -> None:
        """Append a 32-bit unsigned integer."""
        NetUnparser._unparse_int(out, val, 4)

    @staticmethod
    def u16(out: bytearray, val: int) -> None:
        """Append a 16-bit unsigned integer."""
        NetUnparser._unparse_int(out, val, 2)

    @staticmethod
    def u8(out: bytearray, val: int) -> None:
        """Append an 8-bit unsigned integer."""
        NetUnparser._unparse_int(out, val, 1)