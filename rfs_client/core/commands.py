from .connection import FileServiceConnection
from .parser import Parser, ResponseStructure
from datetime import datetime, timezone


def _body_lines(text: str) -> list:
    """Split WRITE content on "\\n" only; one trailing newline ends the last line."""
    if text.endswith("\n"):
        text = text[:-1]
    elif not text:
        return []
    return text.split("\n")


class ClientCommandHandler:
    def __init__(self, connection: FileServiceConnection, parser: Parser = None):
        self.conn = connection
        self.parser = parser or Parser()
        # history as list of dicts: {"time":..., "command":..., "parsed":..., "error":bool}
        self.history = []

    def _record(self, command: str, parsed: ResponseStructure) -> ResponseStructure:
        self.history.append({
            "time": datetime.now(timezone.utc),
            "command": command,
            "parsed": parsed,
            "error": not parsed.ok
        })
        return parsed

    def get_history(self):
        return self.history

    def clear_history(self):
        self.history = []

    def _execute(self, command: str) -> ResponseStructure:
        self.conn.send_command(command)
        return self._record(command, self.parser.parse_status(self.conn.receive_response()))

    # Commands whose response carries payload lines
    def list(self, path: str) -> ResponseStructure:
        command = f"LIST {path}"
        self.conn.send_command(command)
        lines = self.conn.receive_response(raw=True)
        return self._record(command, self.parser.parse_payload(lines, escaped=self.conn.escaped))

    def read(self, path: str) -> ResponseStructure:
        command = f"READ {path}"
        self.conn.send_command(command)
        lines = self.conn.receive_response(raw=True)
        return self._record(command, self.parser.parse_payload(lines, escaped=self.conn.escaped))

    # Status-only commands
    def write(self, path: str, content) -> ResponseStructure:
        """Append `content` (a string or a list of lines) to the remote file."""
        lines = _body_lines(content) if isinstance(content, str) else list(content)
        command = f"WRITE {path}"
        self.conn.send_command(command)
        self.conn.send_body(lines)
        return self._record(command, self.parser.parse_status(self.conn.receive_response()))

    def create_dir(self, path: str) -> ResponseStructure:
        return self._execute(f"CREATE_DIR {path}")

    def copy(self, source: str, target: str) -> ResponseStructure:
        return self._execute(f"COPY {source} {target}")

    def move(self, source: str, destination_dir: str) -> ResponseStructure:
        return self._execute(f"MOVE {source} {destination_dir}")

    def raw(self, line: str) -> ResponseStructure:
        """Send an arbitrary command line (used by the console for free-form input)."""
        return self._execute(line)
