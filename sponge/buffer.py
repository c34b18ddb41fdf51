"""Shared, prefix-trimmable byte buffers and lists of them."""

from __future__ import annotations

from collections import deque
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview, str]


def _byte_view(data: BytesLike) -> memoryview:
    if isinstance(data, str):
        data = data.encode()
    return memoryview(data).cast("B")


class Buffer:
    """A read-only byte string that can cheaply discard bytes from its front.

    Copies made with ``Buffer(other)`` share storage but trim independently.
    """

    __slots__ = ("_view",)

    def __init__(self, data: Buffer | BytesLike = b"") -> None:
        if isinstance(data, Buffer):
            self._view = data._view
        elif isinstance(data, (bytes, str)):
            self._view = _byte_view(data)
        else:
            self._view = _byte_view(bytes(data))

    def __bytes__(self) -> bytes:
        return self._view.tobytes()

    def __len__(self) -> int:
        return len(self._view)

    def __repr__(self) -> str:
        return f"Buffer({bytes(self)!r})"

    def at(self, n: int) -> int:
        """The byte at position ``n``."""
        if not 0 <= n < len(self._view):
            raise IndexError(f"Buffer.at: index {n} out of range")
        return self._view[n]

    def copy(self) -> bytes:
        """A fresh bytes copy of the contents."""
        return self._view.tobytes()

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes without copying."""
        if n < 0 or n > len(self._view):
            raise IndexError("Buffer.remove_prefix")
        self._view = self._view[n:]


class BufferList:
    """A discontiguous byte string made of shared Buffers."""

    def __init__(self, data: BufferList | Buffer | BytesLike | None = None) -> None:
        self._buffers: deque[Buffer] = deque()
        if isinstance(data, BufferList):
            self.append(data)
        elif data is not None:
            self._buffers.append(Buffer(data))

    def buffers(self) -> tuple[Buffer, ...]:
        """The underlying Buffers, front first."""
        return tuple(self._buffers)

    def append(self, other: BufferList | Buffer | BytesLike) -> None:
        """Append another list's Buffers, sharing their storage."""
        if not isinstance(other, BufferList):
            other = BufferList(other)
        self._buffers.extend(Buffer(buf) for buf in other._buffers)

    def to_buffer(self) -> Buffer:
        """Return the list as one Buffer; only allowed if it holds at most one."""
        if not self._buffers:
            return Buffer()
        if len(self._buffers) == 1:
            return Buffer(self._buffers[0])
        raise ValueError(
            "BufferList: use concatenate() to combine a multi-Buffer BufferList into one Buffer"
        )

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes across Buffers."""
        while n > 0:
            if not self._buffers:
                raise IndexError("BufferList.remove_prefix")
            front = self._buffers[0]
            if n < len(front):
                front.remove_prefix(n)
                n = 0
            else:
                n -= len(front)
                self._buffers.popleft()

    def __len__(self) -> int:
        return sum(len(buf) for buf in self._buffers)

    def concatenate(self) -> bytes:
        """Join all Buffers into a single bytes object."""
        return b"".join(bytes(buf) for buf in self._buffers)


class BufferViewList:
    """A non-owning view of a discontiguous byte string, for vectored I/O."""

    def __init__(self, data: BufferList | Buffer | BytesLike) -> None:
        if isinstance(data, BufferList):
            views = [buf._view for buf in data.buffers()]
        elif isinstance(data, Buffer):
            views = [data._view]
        else:
            views = [_byte_view(data)]
        self._views: deque[memoryview] = deque(views)

    def remove_prefix(self, n: int) -> None:
        """Discard the first ``n`` bytes across views."""
        while n > 0:
            if not self._views:
                raise IndexError("BufferViewList.remove_prefix")
            front = self._views[0]
            if n < len(front):
                self._views[0] = front[n:]
                n = 0
            else:
                n -= len(front)
                self._views.popleft()

    def __len__(self) -> int:
        return sum(len(view) for view in self._views)

    def as_iovecs(self) -> list[memoryview]:
        """The views as a list suitable for ``os.writev`` or ``socket.sendmsg``."""
        return list(self._views)