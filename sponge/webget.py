"""Fetch a web page over a plain TCP socket and print the server's reply."""

from __future__ import annotations

import socket
import sys
from typing import BinaryIO

from sponge.address import Address
from sponge.socket import TCPSocket


def get_url(host: str, path: str, out: BinaryIO | None = None) -> None:
    """Request ``path`` from ``host`` over HTTP and copy everything it sends to ``out``."""
    stream = sys.stdout.buffer if out is None else out
    request = f"GET {path} HTTP/1.1\r\nHOST: {host}\r\n\r\n".encode()
    with TCPSocket() as sock:
        sock.connect(Address(host, "http"))
        sock.write(request)
        stream.write(request + b"\n")
        sock.shutdown(socket.SHUT_WR)
        while not sock.eof():
            stream.write(sock.read())
    stream.flush()


def main(argv: list[str] | None = None) -> int:
    """Command entry point: ``webget HOST PATH``."""
    args = sys.argv[1:] if argv is None else argv
    if len(args) != 2:
        print("Usage: webget HOST PATH", file=sys.stderr)
        print("\tExample: webget stanford.edu /class/cs144", file=sys.stderr)
        return 1
    host, path = args
    try:
        get_url(host, path)
    except (OSError, RuntimeError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())