"""Networking building blocks: byte streams, buffers, parsers, checksums, addresses, sockets and an event loop."""

__version__ = "0.1.0"