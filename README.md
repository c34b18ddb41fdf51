# sponge

Small building blocks for user-space networking on POSIX systems:

- `sponge.byte_stream.ByteStream` — a flow-controlled, in-memory byte stream
  with a fixed capacity. The writer calls `write`, `end_input` and
  `set_error`; the reader calls `peek_output`, `pop_output` and `read`, and
  can ask for `buffer_size`, `buffer_empty`, `eof`, `bytes_written`,
  `bytes_read` and `remaining_capacity`.
- `sponge.buffer` — `Buffer`, `BufferList` and `BufferViewList`, byte
  containers that drop bytes from the front with `remove_prefix` without
  copying. `BufferViewList.as_iovecs()` gives a list ready for `os.writev`
  or `socket.sendmsg`.
- `sponge.parser` — `NetParser` and `NetUnparser` for big-endian 8-, 16- and
  32-bit integers. A parser that runs out of data sets its `result` to
  `ParseResult.PACKET_TOO_SHORT` instead of raising; `as_string` names a
  `ParseResult`.
- `sponge.util` — `InternetChecksum`, `format_hexdump` and `hexdump`,
  `timestamp_ms`, `get_random_generator`, `system_call` and the
  `TaggedError` / `UnixError` exceptions.
- `sponge.address` — `Address`, built by resolving a host and service name
  (`Address("example.com", "https")`) or from a dotted quad and a numeric
  port (`Address("127.0.0.1", 8080)`), with `ip_port`, `ip`, `port`,
  `ipv4_numeric` and `Address.from_ipv4_numeric`.
- `sponge.file_descriptor` — `FileDescriptor`, a shared handle on a kernel
  descriptor that tracks EOF, closing, and read and write counts. Use it as
  a context manager to close it on exit; `duplicate()` gives another handle
  sharing the same state.
- `sponge.socket` — `UDPSocket`, `TCPSocket` and `LocalStreamSocket`, all
  `FileDescriptor`s. `UDPSocket.recv` returns a `ReceivedDatagram` with
  `source_address` and `payload`.
- `sponge.eventloop` — `EventLoop`, which polls descriptors with
  `select.poll` and runs callbacks for each rule added with `add_rule`.
  `wait_next_event` returns an `EventResult` (`SUCCESS`, `TIMEOUT` or
  `EXIT`) and raises `RuntimeError` when a callback neither reads nor writes
  its descriptor while still interested (a busy wait).

## Installing

```
pip install .
```

Tests need the `test` extra:

```
pip install ".[test]"
pytest
```

## Examples

```python
from sponge.byte_stream import ByteStream

stream = ByteStream(2)
stream.write(b"cat")        # returns 2: only "ca" fits
stream.peek_output(2)       # b"ca"
stream.pop_output(1)
stream.end_input()
stream.read(1)              # b"a"
stream.eof()                # True
```

```python
from sponge.parser import NetParser, NetUnparser

out = bytearray()
NetUnparser.u32(out, 0xDEADBEEF)
NetUnparser.u16(out, 0xC0C0)
parser = NetParser(bytes(out))
assert parser.u32() == 0xDEADBEEF
assert parser.u16() == 0xC0C0
```

```python
from sponge.util import InternetChecksum

checksum = InternetChecksum()
checksum.add(b"\x45\x00\x00\x1c")
print(hex(checksum.value()))
```

## Command line

`webget` sends an HTTP GET for a path to a host, echoes the request, and
then prints everything the server sends back until it closes the connection:

```
webget example.com /
```

## What it does not do

The package gives the pieces a TCP implementation is built from — streams,
buffers, parsers, checksums, sockets and an event loop — but it contains no
TCP implementation of its own: there is no segment receiver or sender, no
connection state machine, and no TUN/TAP device access. `webget` uses the
operating system's TCP through `TCPSocket`.