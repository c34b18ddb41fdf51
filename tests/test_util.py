import errno
import io
import os
import time

import pytest

from sponge.util import (
    InternetChecksum,
    TaggedError,
    UnixError,
    format_hexdump,
    get_random_generator,
    hexdump,
    system_call,
    timestamp_ms,
)


def test_tagged_error_message_includes_attempt():
    err = TaggedError("attempt", 5, "msg")
    assert str(err) == "attempt: msg"
    assert err.errno == 5
    assert err.attempt == "attempt"


def test_unix_error_uses_strerror():
    err = UnixError("open", errno.ENOENT)
    assert err.errno == errno.ENOENT
    assert str(err) == f"open: {os.strerror(errno.ENOENT)}"


def test_system_call_returns_value():
    assert system_call("getpid", os.getpid) == os.getpid()


def test_system_call_raises_unix_error():
    read_fd, write_fd = os.pipe()
    os.close(read_fd)
    os.close(write_fd)
    with pytest.raises(UnixError) as info:
        system_call("close", os.close, read_fd)
    assert info.value.errno == errno.EBADF
    assert str(info.value).startswith("close: ")


def test_random_generators_produce_varied_values():
    first = get_random_generator()
    second = get_random_generator()
    a = [first.getrandbits(32) for _ in range(16)]
    b = [second.getrandbits(32) for _ in range(16)]
    assert all(0 <= v < 2**32 for v in a + b)
    assert len(set(a)) > 1
    assert a != b


def test_timestamp_is_monotonic():
    t1 = timestamp_ms()
    t2 = timestamp_ms()
    time.sleep(0.02)
    t3 = timestamp_ms()
    assert 0 <= t1 <= t2 <= t3
    assert t3 - t1 >= 15


def test_checksum_of_nothing():
    assert InternetChecksum().value() == 0xFFFF


def test_checksum_verifies_to_zero_when_embedded():
    header = bytearray(bytes.fromhex("450000730000400040110000c0a80001c0a800c7"))
    cksum = InternetChecksum()
    cksum.add(header)
    header[10:12] = cksum.value().to_bytes(2, "big")
    check = InternetChecksum()
    check.add(header)
    assert check.value() == 0


@pytest.mark.parametrize("split", [0, 1, 3, 7, 14])
def test_checksum_split_adds_match_single_add(split):
    data = b"hello, world!!"
    whole = InternetChecksum()
    whole.add(data)
    pieces = InternetChecksum()
    pieces.add(data[:split])
    pieces.add(data[split:])
    assert pieces.value() == whole.value()


def test_checksum_initial_sum_acts_as_prefix():
    seeded = InternetChecksum(0x1234)
    added = InternetChecksum()
    added.add(b"\x12\x34")
    assert seeded.value() == added.value()


def test_hexdump_empty():
    assert format_hexdump(b"") == "     \n\n"


def test_hexdump_two_bytes():
    assert format_hexdump(b"AB") == "00000000:    4142" + " " * 39 + "AB\n\n"


def test_hexdump_nonprintable_shown_as_dots():
    assert format_hexdump(b"\x00\x7f").endswith("..\n\n")


def test_hexdump_multiple_lines_and_indent():
    data = bytes(range(0x41, 0x41 + 20))
    text = format_hexdump(data, indent=2)
    lines = text.split("\n")
    assert lines[-2:] == ["", ""]
    content = lines[:-2]
    assert len(content) == 2
    assert all(line.startswith("  ") for line in content)
    assert content[0].endswith(data[:16].decode())
    assert content[1].endswith(data[16:].decode())


def test_hexdump_writes_to_file():
    out = io.StringIO()
    hexdump(b"xyz", 4, out)
    assert out.getvalue() == format_hexdump(b"xyz", 4)