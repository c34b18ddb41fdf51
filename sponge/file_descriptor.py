"""Reference-counted file descriptors that track EOF and I/O counts."""

from __future__ import annotations

import os
import sys
from typing import Any

from sponge.buffer import BufferList, BufferViewList, BytesLike, Buffer
from sponge.util import system_call

_MAX_READ = 1024 * 1024


class _FDWrapper:
    """The kernel descriptor shared by all duplicates; closes it when dropped."""

    __slots__ = ("fd", "eof", "closed", "read_count", "write_count")

    def __init__(self, fd: int) -> None:
        if fd < 0:
            raise ValueError(f"invalid fd number:{fd}")
        self.fd = fd
        self.eof = False
        self.closed = False
        self.read_count = 0
        self.write_count = 0

    def close(self) -> None:
        system_call("close", os.close, self.fd)
        self.eof = self.closed = True

    def __del__(self) -> None:
        if getattr(self, "closed", True):
            return
        try:
            self.close()
        except OSError as exc:
            print(f"Exception destructing FDWrapper: {exc}", file=sys.stderr)


def _drop_prefix(views: list[memoryview], n: int) -> None:
    while n > 0:
        front = views[0]
        if n < len(front):
            views[0] = front[n:]
            n = 0
        else:
            n -= len(front)
            views.pop(0)


class FileDescriptor:
    """A handle on a kernel file descriptor.

    Duplicates made with :meth:`duplicate` share the descriptor and its state;
    the descriptor is closed when the last handle goes away, or explicitly.
    """

    def __init__(self, fd: int) -> None:
        self._wrapper = _FDWrapper(fd)

    def _register_read(self) -> None:
        self._wrapper.read_count += 1

    def _register_write(self) -> None:
        self._wrapper.write_count += 1

    def read(self, limit: int | None = None) -> bytes:
        """Read up to ``limit`` bytes (at most 1 MiB at once); may return fewer."""
        size = _MAX_READ if limit is None else min(_MAX_READ, limit)
        data = system_call("read", os.read, self.fd_num(), size)
        if size > 0 and not data:
            self._wrapper.eof = True
        if len(data) > size:
            raise RuntimeError("read() read more than requested")
        self._register_read()
        return data

    def write(
        self,
        data: BufferViewList | BufferList | Buffer | BytesLike,
        write_all: bool = True,
    ) -> int:
        """Write ``data``; with ``write_all`` keep going until all of it is written."""
        source = data if isinstance(data, BufferViewList) else BufferViewList(data)
        views = source.as_iovecs()
        remaining = sum(len(view) for view in views)
        total = 0
        while True:
            written = system_call("writev", os.writev, self.fd_num(), views)
            if written == 0 and remaining:
                raise RuntimeError("write returned 0 given non-empty input buffer")
            if written > remaining:
                raise RuntimeError("write wrote more than length of input buffer")
            self._register_write()
            _drop_prefix(views, written)
            remaining -= written
            total += written
            if not (write_all and remaining):
                return total

    def close(self) -> None:
        """Close the underlying descriptor."""
        self._wrapper.close()

    def duplicate(self) -> FileDescriptor:
        """Another handle on the same descriptor, sharing its state."""
        clone = FileDescriptor.__new__(FileDescriptor)
        clone._wrapper = self._wrapper
        return clone

    def set_blocking(self, blocking_state: bool) -> None:
        """Switch the descriptor between blocking and non-blocking mode."""
        system_call("fcntl", os.set_blocking, self.fd_num(), blocking_state)

    def fd_num(self) -> int:
        """The kernel descriptor number."""
        return self._wrapper.fd

    def eof(self) -> bool:
        """Whether a read has reached end of file."""
        return self._wrapper.eof

    def closed(self) -> bool:
        """Whether the descriptor has been closed."""
        return self._wrapper.closed

    def read_count(self) -> int:
        """How many times the descriptor has been read."""
        return self._wrapper.read_count

    def write_count(self) -> int:
        """How many times the descriptor has been written."""
        return self._wrapper.write_count

    def __enter__(self) -> FileDescriptor:
        return self

    def __exit__(self, *args: Any) -> None:
        if not self.closed():
            self.close()