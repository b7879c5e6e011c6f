import logging

from .connection import unescape_line

logger = logging.getLogger(__name__)

ERROR_PREFIX = "ERROR: "


class ResponseStructure:
    def __init__(self, ok: bool, message: str, lines: list):
        self.ok = ok
        self.message = message
        self.lines = lines

    def __repr__(self):
        return f"ResponseStructure(ok={self.ok}, message={self.message!r}, lines={len(self.lines)})"


class Parser:
    def parse_status(self, lines: list) -> ResponseStructure:
        """Responses of WRITE/CREATE_DIR/COPY/MOVE: one status line."""
        if not lines:
            logger.error("Empty response where a status line was expected")
            return ResponseStructure(False, "", [])
        last = lines[-1]
        if last.startswith(ERROR_PREFIX):
            return ResponseStructure(False, last[len(ERROR_PREFIX):], lines[:-1])
        return ResponseStructure(True, last, lines[:-1])

    def parse_payload(self, lines: list, escaped: bool = False) -> ResponseStructure:
        """Responses of LIST/READ: payload lines, or an error as the last line.

        `lines` must be raw (as received). With `escaped` framing a payload line
        starting with "ERROR: " arrives as "\\ERROR: ...", so only an unescaped
        last line is an error; the payload is unescaped afterwards.

        A READ that fails mid-stream sends the lines it already read before the
        error; they are kept in `lines`.
        """
        # In legacy framing a file whose last line starts with "ERROR: " still
        # reads as a failed READ.
        if lines and lines[-1].startswith(ERROR_PREFIX):
            message, payload, ok = lines[-1][len(ERROR_PREFIX):], lines[:-1], False
        else:
            message, payload, ok = "", lines, True
        if escaped:
            payload = [unescape_line(line) for line in payload]
        return ResponseStructure(ok, message, payload)
