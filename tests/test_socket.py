import socket

import pytest

from sponge.address import Address
from sponge.file_descriptor import FileDescriptor
from sponge.socket import LocalStreamSocket, ReceivedDatagram, TCPSocket, UDPSocket


def _bound_udp():
    sock = UDPSocket()
    sock.bind(Address("127.0.0.1", 0))
    return sock


def test_udp_exchange():
    with _bound_udp() as sock1, UDPSocket() as sock2:
        sock2.sendto(sock1.local_address(), b"hi there")
        recvd = sock1.recv()
        sock1.connect(recvd.source_address)
        sock1.send(b"hi yourself")
        recvd2 = sock2.recv()
        assert recvd.payload == b"hi there"
        assert recvd2.payload == b"hi yourself"
        assert recvd2.source_address == sock1.local_address()


def test_udp_recv_returns_datagram_and_counts():
    with _bound_udp() as sock1, UDPSocket() as sock2:
        sock2.sendto(sock1.local_address(), "hi there")
        recvd = sock1.recv()
        assert isinstance(recvd, ReceivedDatagram)
        assert recvd.payload == b"hi there"
        assert sock1.read_count() == 1
        assert sock2.write_count() == 1


def test_udp_oversized_datagram_raises():
    with _bound_udp() as sock1, UDPSocket() as sock2:
        sock2.sendto(sock1.local_address(), b"hi there")
        with pytest.raises(RuntimeError, match="oversized"):
            sock1.recv(mtu=2)


def test_tcp_exchange():
    sock1 = TCPSocket()
    sock1.bind(Address("127.0.0.1", 0))
    sock1.listen(1)
    sock2 = TCPSocket()
    sock2.connect(sock1.local_address())
    sock3 = sock1.accept()
    sock3.write(b"hi there")
    recvd = sock2.read()
    sock2.write(b"hi yourself")
    recvd2 = sock3.read()
    assert recvd == b"hi there"
    assert recvd2 == b"hi yourself"
    assert sock2.peer_address() == sock1.local_address()
    assert sock3.local_address() == sock1.local_address()
    sock1.close()
    sock2.close()
    sock3.shutdown(socket.SHUT_RDWR)
    assert sock1.closed() is True
    assert sock3.read_count() == 2
    assert sock3.write_count() == 2
    sock3.close()


def test_shutdown_write_gives_peer_eof():
    left, right = socket.socketpair()
    pipe1 = LocalStreamSocket(FileDescriptor(left.detach()))
    pipe2 = LocalStreamSocket(FileDescriptor(right.detach()))
    with pipe1, pipe2:
        pipe1.shutdown(socket.SHUT_WR)
        assert pipe1.write_count() == 1
        assert pipe2.read() == b""
        assert pipe2.eof() is True


def test_local_stream_socket_pair():
    left, right = socket.socketpair()
    pipe1 = LocalStreamSocket(FileDescriptor(left.detach()))
    pipe2 = LocalStreamSocket(FileDescriptor(right.detach()))
    with pipe1, pipe2:
        pipe1.write(b"hi there")
        recvd = pipe2.read()
        pipe2.write(b"hi yourself")
        recvd2 = pipe1.read()
        assert recvd == b"hi there"
        assert recvd2 == b"hi yourself"


def test_domain_mismatch():
    raw = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    with pytest.raises(RuntimeError, match="socket domain mismatch"):
        LocalStreamSocket(FileDescriptor(raw.detach()))


def test_type_mismatch():
    raw = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    with pytest.raises(RuntimeError, match="socket type mismatch"):
        TCPSocket(FileDescriptor(raw.detach()))


def test_set_reuseaddr():
    with TCPSocket() as sock:
        sock.set_reuseaddr()
        probe = socket.fromfd(sock.fd_num(), socket.AF_INET, socket.SOCK_STREAM)
        try:
            assert probe.getsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR) != 0
        finally:
            probe.close()
        assert sock.closed() is False


def test_bind_reports_chosen_port():
    with _bound_udp() as sock:
        address = sock.local_address()
        assert address.ip() == "127.0.0.1"
        assert 0 < address.port() <= 0xFFFF


def test_invalid_shutdown_raises():
    left, right = socket.socketpair()
    pipe1 = LocalStreamSocket(FileDescriptor(left.detach()))
    pipe2 = LocalStreamSocket(FileDescriptor(right.detach()))
    with pipe1, pipe2:
        with pytest.raises(OSError):
            pipe1.shutdown(99)
        assert pipe1.write_count() == 0