import logging
import socket
import threading

logger = logging.getLogger("rfs.server.client_connection")

ENCODING = "utf-8"


class ClientConnection:
    """Stream de un cliente con vistas de lectura/escritura por líneas.

    Se crea al aceptar la conexión y pertenece exclusivamente al hilo que la
    atiende. No guarda estado entre comandos aparte del socket abierto.
    """

    def __init__(self, client_socket: socket.socket, client_address=None):
        self.socket = client_socket
        self.client_address = client_address

        # Lock para serializar envíos por la conexión
        self.control_lock = threading.RLock()

        self.reader = client_socket.makefile("rb")
        self.writer = client_socket.makefile("wb")
        self.closed = False

    # ----------------- lectura -----------------
    def read_line(self):
        """Lee una línea sin el terminador (LF o CRLF).

        Retorna None en fin de stream. Los timeouts y errores de socket se
        propagan al llamador.
        """
        raw = self.reader.readline()
        if not raw:
            return None

        line = raw.decode(ENCODING, errors="replace")
        if line.endswith("\n"):
            line = line[:-1]
        if line.endswith("\r"):
            line = line[:-1]

        logger.debug("Received line from %s: %r", self.client_address, line)
        return line

    # ----------------- escritura -----------------
    def write_line(self, line: str) -> None:
        """Encola una línea en el buffer de salida (requiere flush())."""
        with self.control_lock:
            self.writer.write((line + "\n").encode(ENCODING))

    def flush(self) -> None:
        with self.control_lock:
            self.writer.flush()

    # ----------------- ciclo de vida -----------------
    def close(self):
        """Cierra las vistas y el socket. Es idempotente."""
        if self.closed:
            return
        self.closed = True

        for stream in (self.writer, self.reader):
            try:
                stream.close()
            except OSError:
                logger.debug("Error closing stream for %s", self.client_address, exc_info=True)

        try:
            self.socket.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            logger.exception("Error closing client socket for %s", self.client_address)

    def __str__(self):
        return f"ClientConnection(addr={self.client_address}, closed={self.closed})"
