"""IPv4 socket addresses and DNS lookups."""

from __future__ import annotations

import ipaddress
import socket
from typing import Any, Union

from sponge.util import TaggedError

SockAddr = Union[tuple, str, bytes]

_NUMERIC_FLAGS = socket.NI_NUMERICHOST | socket.NI_NUMERICSERV


def _family_of(sockaddr: Any) -> int:
    if isinstance(sockaddr, (str, bytes)):
        return socket.AF_UNIX
    if isinstance(sockaddr, tuple) and len(sockaddr) == 2:
        return socket.AF_INET
    if isinstance(sockaddr, tuple) and len(sockaddr) == 4:
        return socket.AF_INET6
    raise ValueError(f"invalid sockaddr: {sockaddr!r}")


class Address:
    """A socket address, built by resolving a host and service or from raw parts.

    ``Address(host, "https")`` resolves names through DNS and the services
    database; ``Address("18.71.0.151", 53)`` takes a dotted quad and a numeric
    port without resolving anything.
    """

    __slots__ = ("family", "_sockaddr")

    def __init__(self, host: str, service: str | int = 0) -> None:
        if isinstance(service, int):
            if not 0 <= service <= 0xFFFF:
                raise ValueError(f"port out of range: {service}")
            service_text = str(service)
            flags = socket.AI_NUMERICHOST | socket.AI_NUMERICSERV
        else:
            service_text = service
            flags = socket.AI_ALL
        try:
            results = socket.getaddrinfo(host, service_text, socket.AF_INET, 0, 0, flags)
        except socket.gaierror as exc:
            raise TaggedError(
                f"getaddrinfo({host}, {service_text})", exc.errno, exc.strerror
            ) from exc
        if not results:
            raise RuntimeError("getaddrinfo returned successfully but with no results")
        family, _type, _proto, _canon, sockaddr = results[0]
        self.family = family
        self._sockaddr = tuple(sockaddr)

    @classmethod
    def from_sockaddr(cls, sockaddr: SockAddr) -> Address:
        """Build an Address from a sockaddr as the socket module reports it."""
        family = _family_of(sockaddr)
        address = cls.__new__(cls)
        address.family = family
        address._sockaddr = sockaddr if family == socket.AF_UNIX else tuple(sockaddr)
        return address

    @classmethod
    def from_ipv4_numeric(cls, ip_address: int) -> Address:
        """Build an IPv4 Address (port 0) from a 32-bit host-order number."""
        if not 0 <= ip_address <= 0xFFFFFFFF:
            raise ValueError(f"IPv4 address out of range: {ip_address}")
        return cls.from_sockaddr((str(ipaddress.IPv4Address(ip_address)), 0))

    def ip_port(self) -> tuple[str, int]:
        """The numeric IP address string and port number."""
        if self.family not in (socket.AF_INET, socket.AF_INET6):
            raise TaggedError("getnameinfo", socket.EAI_FAMILY, "address family not supported")
        try:
            host, port = socket.getnameinfo(self._sockaddr, _NUMERIC_FLAGS)
        except socket.gaierror as exc:
            raise TaggedError("getnameinfo", exc.errno, exc.strerror) from exc
        return host, int(port)

    def ip(self) -> str:
        """The numeric IP address string, e.g. ``"18.243.0.1"``."""
        return self.ip_port()[0]

    def port(self) -> int:
        """The port number."""
        return self.ip_port()[1]

    def ipv4_numeric(self) -> int:
        """The IPv4 address as a 32-bit number in host byte order."""
        if self.family != socket.AF_INET:
            raise ValueError("ipv4_numeric called on non-IPV4 address")
        return int(ipaddress.IPv4Address(self._sockaddr[0]))

    def sockaddr(self) -> SockAddr:
        """The address in the form the socket module's calls accept."""
        return self._sockaddr

    def __str__(self) -> str:
        ip, port = self.ip_port()
        return f"{ip}:{port}"

    def __repr__(self) -> str:
        return f"Address.from_sockaddr({self._sockaddr!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Address):
            return NotImplemented
        return self.family == other.family and self._sockaddr == other._sockaddr

    def __hash__(self) -> int:
        return hash((self.family, self._sockaddr))