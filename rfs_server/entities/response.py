import logging
import re

from rfs_server.config import FRAMING_ESCAPED, FRAMING_LEGACY

logger = logging.getLogger("rfs.server.response")

SENTINEL = "END"
ERROR_PREFIX = "ERROR: "

# Líneas de payload que un receptor podría confundir con el centinela (END,
# \END...) o con una línea de error (ERROR: ..., \ERROR: ...)
_ESCAPABLE = re.compile(r"\\*(?:END\Z|ERROR: )")
_ESCAPED = re.compile(r"\\+(?:END\Z|ERROR: )")


def escape_line(line: str) -> str:
    """Antepone una barra invertida a las líneas con forma de centinela o de error."""
    if _ESCAPABLE.match(line):
        return "\\" + line
    return line


def unescape_line(line: str) -> str:
    """Inversa de escape_line()."""
    if _ESCAPED.match(line):
        return line[1:]
    return line


class ResponseWriter:
    """Emite una respuesta: líneas de payload, línea de estado y el centinela END.

    Una respuesta está completa sólo cuando END fue escrito y el buffer vaciado.

    Con framing "escaped" las líneas de payload con forma de centinela o de error se
    escapan (escape_line); con "legacy" se envían tal cual, y una línea de
    payload igual a END es indistinguible del terminador.
    """

    def __init__(self, connection, framing: str = FRAMING_ESCAPED):
        if framing not in (FRAMING_ESCAPED, FRAMING_LEGACY):
            raise ValueError(f"Invalid framing mode: {framing!r}")
        self.connection = connection
        self.framing = framing
        self.finished = False

    def send_line(self, line: str) -> None:
        """Envía una línea de payload (entrada de directorio, línea de archivo)."""
        if self.framing == FRAMING_ESCAPED:
            line = escape_line(line)
        self.connection.write_line(line)

    def send_lines(self, lines) -> None:
        for line in lines:
            self.send_line(line)

    def end(self) -> None:
        """Escribe el centinela y vacía el buffer."""
        self.connection.write_line(SENTINEL)
        self.connection.flush()
        self.finished = True

    def complete(self, status: str) -> None:
        """Respuesta de éxito: línea de estado + END."""
        self.connection.write_line(status)
        self.end()
        logger.info("Sent response to %s: %s", self.connection.client_address, status)

    def error(self, message: str) -> None:
        """Respuesta de error: 'ERROR: <message>' + END."""
        self.connection.write_line(ERROR_PREFIX + message)
        self.end()
        logger.warning("Sent error to %s: %s", self.connection.client_address, message)

    def unescape(self, line: str) -> str:
        """Decodifica una línea recibida (cuerpo de WRITE) según el framing activo."""
        if self.framing == FRAMING_ESCAPED:
            return unescape_line(line)
        return line
