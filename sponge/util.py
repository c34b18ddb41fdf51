"""System-call error handling, Internet checksums, timing and hex dumps."""

from __future__ import annotations

import os
import random
import sys
import time
from typing import Any, Callable, TextIO, TypeVar

_T = TypeVar("_T")

_PROGRAM_START = time.monotonic()


class TaggedError(OSError):
    """An operating-system error that also names what was being attempted."""

    def __init__(self, attempt: str, error_code: int, message: str) -> None:
        super().__init__(error_code, message)
        self.attempt = attempt

    def __str__(self) -> str:
        return f"{self.attempt}: {self.strerror}"


class UnixError(TaggedError):
    """A failed system call, described by its name and errno value."""

    def __init__(self, attempt: str, error: int) -> None:
        super().__init__(attempt, error, os.strerror(error))


def system_call(attempt: str, func: Callable[..., _T], *args: Any) -> _T:
    """Call ``func(*args)``, turning any OSError into a UnixError naming ``attempt``."""
    try:
        return func(*args)
    except TaggedError:
        raise
    except OSError as exc:
        raise UnixError(attempt, exc.errno if exc.errno is not None else 0) from exc


def get_random_generator() -> random.Random:
    """Return a random generator seeded with plenty of system entropy."""
    return random.Random(os.urandom(624 * 4))


def timestamp_ms() -> int:
    """Milliseconds elapsed since the program started (monotonic clock)."""
    return int((time.monotonic() - _PROGRAM_START) * 1000)


class InternetChecksum:
    """The ones'-complement Internet checksum, returned in host byte order.

    Running it over data that already holds a correct checksum yields zero.
    """

    def __init__(self, initial_sum: int = 0) -> None:
        self._sum = initial_sum & 0xFFFFFFFF
        self._odd = False

    def add(self, data: bytes | bytearray | memoryview) -> None:
        """Feed more bytes; odd-length pieces are handled across calls."""
        total = self._sum
        odd = self._odd
        for byte in bytes(data):
            total = (total + (byte if odd else byte << 8)) & 0xFFFFFFFF
            odd = not odd
        self._sum = total
        self._odd = odd

    def value(self) -> int:
        """The 16-bit checksum of everything added so far."""
        folded = self._sum
        while folded > 0xFFFF:
            folded = (folded >> 16) + (folded & 0xFFFF)
        return ~folded & 0xFFFF


def _printable(byte: int) -> str:
    return chr(byte) if 0x20 <= byte < 0x7F else "."


def format_hexdump(data: bytes | bytearray | memoryview, indent: int = 0) -> str:
    """Render bytes as an offset / hex / ASCII dump, sixteen bytes per line."""
    raw = bytes(data)
    pad = " " * indent
    parts: list[str] = []
    chars: list[str] = []
    for printed, byte in enumerate(raw):
        if printed % 16 == 0:
            if printed:
                parts.append("    " + "".join(chars) + "\n")
                chars = []
            parts.append(f"{pad}{printed:08x}:    ")
        elif printed % 2 == 0:
            parts.append(" ")
        parts.append(f"{byte:02x}")
        chars.append(_printable(byte))
    remainder = (16 - len(raw) % 16) % 16
    parts.append(" " * (2 * remainder + remainder // 2 + 4))
    parts.append("".join(chars) or " ")
    parts.append("\n\n")
    return "".join(parts)


def hexdump(
    data: bytes | bytearray | memoryview,
    indent: int = 0,
    file: TextIO | None = None,
) -> None:
    """Write a hex dump of ``data`` to ``file`` (standard output by default)."""
    stream = sys.stdout if file is None else file
    stream.write(format_hexdump(data, indent))
    stream.flush()