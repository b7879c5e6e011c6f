"""Connection-level tests: framing modes, WRITE body hazards, concurrency,
connection limits and idle timeouts."""

import socket
import threading
import time

import pytest

from conftest import (
    _read_line,
    command,
    read_response,
    send_command,
    send_write,
    staging_files,
    wait_for,
)


# ---------------------------------------------------------------------------
# Framing
# ---------------------------------------------------------------------------

class TestEscapedFraming:
    """Default framing: payload lines shaped like END are backslash-escaped."""

    def test_read_escapes_sentinel_lines(self, raw_connection, tmp_path):
        path = tmp_path / "f.txt"
        path.write_text("a\nEND\n\\END\nb\n")
        assert command(raw_connection, "READ {}".format(path)) == ["a", "\\END", "\\\\END", "b"]

    def test_list_entry_named_end(self, raw_connection, tmp_path):
        (tmp_path / "END").write_text("x")
        assert command(raw_connection, "LIST {}".format(tmp_path)) == [str(tmp_path / "END")]

    def test_write_body_unescapes(self, raw_connection, tmp_path):
        path = tmp_path / "f.txt"
        assert send_write(raw_connection, path, ["x", "\\END", "\\\\END", "y"]) == ["WRITE COMPLETE"]
        assert path.read_text() == "x\nEND\n\\END\ny\n"

    def test_status_lines_are_not_escaped(self, raw_connection, tmp_path):
        assert command(raw_connection, "CREATE_DIR {}".format(tmp_path / "END")) == ["DIRECTORY CREATED"]


class TestLegacyFraming:
    """Legacy framing: payload lines are sent verbatim."""

    def test_read_is_verbatim(self, make_server, connect, tmp_path):
        server = make_server(framing="legacy")
        sock = connect(server)
        path = tmp_path / "f.txt"
        path.write_text("a\n\\END\nb\n")
        assert command(sock, "READ {}".format(path)) == ["a", "\\END", "b"]

    def test_payload_end_line_is_ambiguous(self, make_server, connect, tmp_path):
        """A content line END ends the response early: the documented ambiguity."""
        server = make_server(framing="legacy")
        sock = connect(server)
        path = tmp_path / "f.txt"
        path.write_text("a\nEND\nb\n")
        send_command(sock, "READ {}".format(path))
        assert read_response(sock) == ["a"]
        assert read_response(sock) == ["b"]

    def test_write_body_is_verbatim(self, make_server, connect, tmp_path):
        server = make_server(framing="legacy")
        sock = connect(server)
        path = tmp_path / "f.txt"
        assert send_write(sock, path, ["\\END"]) == ["WRITE COMPLETE"]
        assert path.read_text() == "\\END\n"


# ---------------------------------------------------------------------------
# WRITE body hazards
# ---------------------------------------------------------------------------

class TestWriteInterrupted:

    def test_disconnect_mid_body_discards_content(self, file_server, connect, tmp_path):
        path = tmp_path / "partial.txt"
        sock = connect(file_server)
        sock.sendall("WRITE {}\nline one\nline two\n".format(path).encode())
        assert wait_for(lambda: file_server.active_clients == 1)
        time.sleep(0.2)
        sock.close()

        assert wait_for(lambda: file_server.active_clients == 0)
        assert not path.exists()
        assert staging_files(tmp_path) == []

    def test_disconnect_mid_append_keeps_original(self, file_server, connect, tmp_path):
        path = tmp_path / "existing.txt"
        path.write_text("original\n")
        sock = connect(file_server)
        sock.sendall("WRITE {}\nextra\n".format(path).encode())
        assert wait_for(lambda: file_server.active_clients == 1)
        time.sleep(0.2)
        sock.close()

        assert wait_for(lambda: file_server.active_clients == 0)
        assert path.read_text() == "original\n"

    def test_idle_timeout_during_body(self, make_server, connect, tmp_path):
        """A body that never ends is abandoned when the idle timeout fires."""
        server = make_server(idle_timeout=0.5)
        path = tmp_path / "stalled.txt"
        sock = connect(server)
        sock.sendall("WRITE {}\nstalled\n".format(path).encode())

        assert sock.recv(1024) == b""
        assert not path.exists()
        assert wait_for(lambda: staging_files(tmp_path) == [])


# ---------------------------------------------------------------------------
# Timeouts and limits
# ---------------------------------------------------------------------------

class TestConnectionLifecycle:

    def test_idle_client_is_disconnected(self, make_server, connect):
        server = make_server(idle_timeout=0.5)
        sock = connect(server)
        start = time.monotonic()
        assert sock.recv(1024) == b""
        assert time.monotonic() - start < 4.0

    def test_no_timeout_when_disabled(self, make_server, connect, tmp_path):
        server = make_server(idle_timeout=0)
        sock = connect(server)
        time.sleep(0.8)
        assert command(sock, "LIST {}".format(tmp_path)) == []

    def test_max_connections_queues_extra_clients(self, make_server, connect, tmp_path):
        server = make_server(max_connections=1)
        first = connect(server)
        assert command(first, "LIST {}".format(tmp_path)) == []

        second = connect(server, timeout=0.8)
        send_command(second, "CREATE_DIR {}".format(tmp_path / "queued"))
        with pytest.raises(socket.timeout):
            _read_line(second)
        assert not (tmp_path / "queued").exists()

        first.close()
        second.settimeout(5.0)
        assert read_response(second) == ["DIRECTORY CREATED"]

    def test_stop_closes_listener(self, make_server, connect):
        server = make_server()
        address = server.address
        server.stop()
        with pytest.raises(OSError):
            socket.create_connection(address, timeout=1.0)

    def test_client_close_is_clean(self, file_server, connect):
        sock = connect(file_server)
        assert wait_for(lambda: file_server.active_clients == 1)
        sock.close()
        assert wait_for(lambda: file_server.active_clients == 0)


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class TestConcurrency:

    def test_disjoint_paths_complete_independently(self, file_server, connect, tmp_path):
        x = tmp_path / "x.txt"
        y = tmp_path / "y.txt"
        y.write_text("y1\ny2\n")
        results = {}

        def writer():
            sock = connect(file_server)
            results["write"] = send_write(sock, x, ["x{}".format(i) for i in range(200)])

        def reader():
            sock = connect(file_server)
            results["read"] = command(sock, "READ {}".format(y))

        threads = [threading.Thread(target=writer), threading.Thread(target=reader)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(10)

        assert results["write"] == ["WRITE COMPLETE"]
        assert results["read"] == ["y1", "y2"]
        assert x.read_text().splitlines() == ["x{}".format(i) for i in range(200)]

    def test_concurrent_appends_are_not_lost(self, file_server, connect, tmp_path):
        path = tmp_path / "shared.txt"
        clients = 8
        errors = []

        def append(n):
            try:
                sock = connect(file_server)
                for i in range(5):
                    assert send_write(sock, path, ["c{}-{}".format(n, i)]) == ["WRITE COMPLETE"]
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=append, args=(n,)) for n in range(clients)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(20)

        assert errors == []
        lines = path.read_text().splitlines()
        assert sorted(lines) == sorted("c{}-{}".format(n, i) for n in range(clients) for i in range(5))
        assert staging_files(tmp_path) == []

    def test_one_client_blocked_in_write_does_not_block_others(self, file_server, connect, tmp_path):
        stalled = connect(file_server)
        stalled.sendall("WRITE {}\nhalf a body\n".format(tmp_path / "slow.txt").encode())

        other = connect(file_server)
        assert command(other, "CREATE_DIR {}".format(tmp_path / "free")) == ["DIRECTORY CREATED"]
