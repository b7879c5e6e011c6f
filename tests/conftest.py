"""Shared fixtures and helpers for the rfs test suite.

Integration tests start an in-process FileServer on an ephemeral loopback
port and talk to it over raw sockets, so no external daemon is needed.

Usage:
    pytest tests/ -v
"""

import os
import socket
import sys
import time

import pytest

# Make the packages importable when running from a source checkout
_root_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _root_dir not in sys.path:
    sys.path.insert(0, _root_dir)

from rfs_server.config import ServerConfig
from rfs_server.entities.file_server import FileServer


# ---------------------------------------------------------------------------
# Wire protocol helpers
# ---------------------------------------------------------------------------

def _read_line(sock):
    """Read one line from sock, byte-by-byte until LF. Strips CR LF / LF."""
    buf = bytearray()
    while True:
        b = sock.recv(1)
        if not b:
            raise ConnectionError(
                "EOF while reading line (partial: {!r})".format(bytes(buf)))
        if b == b"\n":
            break
        buf.extend(b)
    line = buf.decode("utf-8")
    if line.endswith("\r"):
        line = line[:-1]
    return line


def send_command(sock, command):
    """Send a command line to the server."""
    sock.sendall((command + "\n").encode("utf-8"))


def read_response(sock):
    """Read every line up to the END sentinel. Returns the lines without it."""
    lines = []
    while True:
        line = _read_line(sock)
        if line == "END":
            return lines
        lines.append(line)


def command(sock, line):
    """Send a command and return its response lines."""
    send_command(sock, line)
    return read_response(sock)


def send_write(sock, path, lines):
    """Execute a complete WRITE: command line, body lines, END terminator.

    Returns the response lines.
    """
    payload = "WRITE {}\n".format(path)
    payload += "".join(line + "\n" for line in lines)
    payload += "END\n"
    sock.sendall(payload.encode("utf-8"))
    return read_response(sock)


def wait_for(predicate, timeout=5.0, interval=0.05):
    """Poll predicate() until it returns True or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def staging_files(directory):
    """Temporary files left by WRITE/COPY staging in a directory."""
    return [name for name in os.listdir(directory) if name.startswith(".rfs-")]


# ---------------------------------------------------------------------------
# Server fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def make_server():
    """Factory: start a FileServer with the given config overrides.

    Every server started through the factory is stopped at teardown.
    """
    servers = []

    def _make(**overrides):
        options = {"host": "127.0.0.1", "port": 0, "idle_timeout": 10.0}
        options.update(overrides)
        server = FileServer(ServerConfig(**options))
        server.start()
        server.serve_in_background()
        servers.append(server)
        return server

    yield _make

    for server in servers:
        server.stop()


@pytest.fixture
def file_server(make_server):
    """A running server with default (escaped) framing."""
    return make_server()


@pytest.fixture
def connect():
    """Factory: open raw sockets to a server; all are closed at teardown."""
    sockets = []

    def _connect(server, timeout=5.0):
        sock = socket.create_connection(server.address, timeout=timeout)
        sockets.append(sock)
        return sock

    yield _connect

    for sock in sockets:
        try:
            sock.close()
        except OSError:
            pass


@pytest.fixture
def raw_connection(file_server, connect):
    """A raw socket connected to the default server."""
    return connect(file_server)
