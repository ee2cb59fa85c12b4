import socket

import pytest


@pytest.fixture
def listener():
    """A loopback TCP listener; yields its port."""
    srv = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    srv.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    srv.bind(("127.0.0.1", 0))
    srv.listen(50)
    try:
        yield srv.getsockname()[1]
    finally:
        srv.close()


def _free_port():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


@pytest.fixture
def closed_ports(listener):
    # nothing listens on these, loopback refuses right away
    ports = set()
    while len(ports) < 2:
        p = _free_port()
        if p != listener:
            ports.add(p)
    return sorted(ports)
