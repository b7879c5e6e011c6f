import socket
import logging

logger = logging.getLogger(__name__)

ENCODING = "utf-8"
SENTINEL = "END"
ERROR_PREFIX = "ERROR: "


class ProtocolError(Exception):
    """Raised when the server closes the stream or sends malformed framing."""


def _escapable(line: str) -> bool:
    bare = line.lstrip("\\")
    return bare == SENTINEL or bare.startswith(ERROR_PREFIX)


def escape_line(line: str) -> str:
    """Escape a payload line that would otherwise read as the END sentinel or an error."""
    if _escapable(line):
        return "\\" + line
    return line


def unescape_line(line: str) -> str:
    """Inverse of escape_line() for payload lines received from the server."""
    if line.startswith("\\") and _escapable(line):
        return line[1:]
    return line


class FileServiceConnection:
    def __init__(self, host: str, port: int, timeout: float = 10.0, escaped: bool = True):
        self.host = host
        self.port = port
        self.timeout = timeout
        self.escaped = escaped
        self.socket: socket.socket = None
        self._reader = None

    def connect(self):
        if self.socket is not None:
            raise RuntimeError("Connection already established.")
        try:
            logger.info(f"Connecting to {self.host}:{self.port} (timeout={self.timeout}s)")
            self.socket = socket.create_connection((self.host, self.port), timeout=self.timeout)
            self._reader = self.socket.makefile("rb")
            logger.info(f"Connected to {self.host}:{self.port}")
        except OSError as e:
            logger.error(f"Failed to connect to {self.host}:{self.port} - {e}")
            self.socket = None
            raise ConnectionError(f"Failed to connect to {self.host}:{self.port} - {e}")

    def disconnect(self):
        if self.socket:
            logger.info(f"Closing connection to {self.host}:{self.port}")
            try:
                self.socket.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
            self._reader.close()
            self.socket.close()
        self.socket = None
        self._reader = None

    @property
    def connected(self) -> bool:
        return self.socket is not None

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()

    def send_line(self, line: str):
        if self.socket is None:
            raise RuntimeError("No connection established.")
        logger.debug(f"-> SEND: {line}")
        self.socket.sendall((line + "\n").encode(ENCODING))

    def send_command(self, command: str):
        self.send_line(command)

    def send_body(self, lines):
        """Send WRITE body lines followed by the END terminator."""
        if self.socket is None:
            raise RuntimeError("No connection established.")
        chunks = []
        for line in lines:
            chunks.append((escape_line(line) if self.escaped else line) + "\n")
        chunks.append(SENTINEL + "\n")
        self.socket.sendall("".join(chunks).encode(ENCODING))

    def read_line(self) -> str:
        if self._reader is None:
            raise RuntimeError("No connection established.")
        try:
            raw = self._reader.readline()
        except socket.timeout:
            raise ProtocolError("Timed out waiting for data from server")
        if not raw:
            raise ProtocolError("Connection closed by server")
        line = raw.decode(ENCODING, errors="replace")
        return line.rstrip("\n").rstrip("\r")

    def receive_response(self, raw: bool = False) -> list:
        """Read lines up to the END sentinel; returns them without the sentinel.

        With `raw` the lines are returned as sent, still escaped.
        """
        lines = []
        while True:
            line = self.read_line()
            if line == SENTINEL:
                break
            lines.append(unescape_line(line) if self.escaped and not raw else line)
        logger.debug(f"<- RECV: {len(lines)} lines")
        return lines
