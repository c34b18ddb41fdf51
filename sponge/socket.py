"""Wrappers around UDP, TCP and Unix-domain stream sockets."""

from __future__ import annotations

import contextlib
import socket
from dataclasses import dataclass
from typing import Iterator, Union

from sponge.address import Address
from sponge.buffer import Buffer, BufferList, BufferViewList, BytesLike
from sponge.file_descriptor import FileDescriptor
from sponge.util import system_call

Payload = Union[BufferViewList, BufferList, Buffer, BytesLike]


class Socket(FileDescriptor):
    """Base class for network sockets; used through its subclasses."""

    def __init__(
        self,
        domain: int,
        sock_type: int,
        fd: FileDescriptor | int | None = None,
    ) -> None:
        if fd is None:
            sock = system_call("socket", socket.socket, domain, sock_type)
            super().__init__(sock.detach())
            return
        if isinstance(fd, FileDescriptor):
            self._wrapper = fd._wrapper
        else:
            super().__init__(fd)
        with self._as_socket() as sock:
            if sock.family != domain:
                raise RuntimeError("socket domain mismatch")
            if sock.type != sock_type:
                raise RuntimeError("socket type mismatch")

    @contextlib.contextmanager
    def _as_socket(self) -> Iterator[socket.socket]:
        """A temporary socket object over our descriptor that never closes it."""
        sock = system_call("socket", socket.socket, -1, -1, -1, self.fd_num())
        try:
            yield sock
        finally:
            sock.detach()

    def bind(self, address: Address) -> None:
        """Bind to a local address, usually before listen/accept."""
        with self._as_socket() as sock:
            system_call("bind", sock.bind, address.sockaddr())

    def connect(self, address: Address) -> None:
        """Connect to a peer address."""
        with self._as_socket() as sock:
            system_call("connect", sock.connect, address.sockaddr())

    def shutdown(self, how: int) -> None:
        """Shut down reading (SHUT_RD), writing (SHUT_WR) or both (SHUT_RDWR)."""
        with self._as_socket() as sock:
            system_call("shutdown", sock.shutdown, how)
        if how == socket.SHUT_RD:
            self._register_read()
        elif how == socket.SHUT_WR:
            self._register_write()
        elif how == socket.SHUT_RDWR:
            self._register_read()
            self._register_write()
        else:
            raise ValueError("Socket.shutdown() called with invalid `how`")

    def local_address(self) -> Address:
        """The socket's local address."""
        with self._as_socket() as sock:
            return Address.from_sockaddr(system_call("getsockname", sock.getsockname))

    def peer_address(self) -> Address:
        """The address of the socket's peer."""
        with self._as_socket() as sock:
            return Address.from_sockaddr(system_call("getpeername", sock.getpeername))

    def set_reuseaddr(self) -> None:
        """Allow the local address to be reused sooner (SO_REUSEADDR)."""
        with self._as_socket() as sock:
            system_call("setsockopt", sock.setsockopt, socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)


@dataclass
class ReceivedDatagram:
    """A datagram's payload and the address it came from."""

    source_address: Address
    payload: bytes


def _iovecs(payload: Payload) -> tuple[list[memoryview], int]:
    views = payload if isinstance(payload, BufferViewList) else BufferViewList(payload)
    return views.as_iovecs(), len(views)


class UDPSocket(Socket):
    """A UDP socket."""

    def __init__(self, fd: FileDescriptor | int | None = None) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_DGRAM, fd)

    def recv(self, mtu: int = 65536) -> ReceivedDatagram:
        """Receive one datagram; raise RuntimeError if it is larger than ``mtu``."""
        with self._as_socket() as sock:
            data, _ancdata, flags, source = system_call("recvfrom", sock.recvmsg, mtu)
        if flags & socket.MSG_TRUNC:
            raise RuntimeError("recvfrom (oversized datagram)")
        self._register_read()
        return ReceivedDatagram(Address.from_sockaddr(source), data)

    def _send(self, payload: Payload, destination: Address | None) -> None:
        iovecs, size = _iovecs(payload)
        with self._as_socket() as sock:
            if destination is None:
                sent = system_call("sendmsg", sock.sendmsg, iovecs)
            else:
                sent = system_call("sendmsg", sock.sendmsg, iovecs, [], 0, destination.sockaddr())
        if sent != size:
            raise RuntimeError("datagram payload too big for sendmsg()")
        self._register_write()

    def sendto(self, destination: Address, payload: Payload) -> None:
        """Send a datagram to ``destination``."""
        self._send(payload, destination)

    def send(self, payload: Payload) -> None:
        """Send a datagram to the connected peer."""
        self._send(payload, None)


class TCPSocket(Socket):
    """A TCP socket."""

    def __init__(self, fd: FileDescriptor | int | None = None) -> None:
        super().__init__(socket.AF_INET, socket.SOCK_STREAM, fd)

    def listen(self, backlog: int = 16) -> None:
        """Mark the socket as accepting incoming connections."""
        with self._as_socket() as sock:
            system_call("listen", sock.listen, backlog)

    def accept(self) -> TCPSocket:
        """Block until a connection arrives; return a socket connected to the peer."""
        self._register_read()
        with self._as_socket() as sock:
            conn, _address = system_call("accept", sock.accept)
        return TCPSocket(FileDescriptor(conn.detach()))


class LocalStreamSocket(Socket):
    """A Unix-domain stream socket over an existing descriptor."""

    def __init__(self, fd: FileDescriptor | int) -> None:
        super().__init__(socket.AF_UNIX, socket.SOCK_STREAM, fd)