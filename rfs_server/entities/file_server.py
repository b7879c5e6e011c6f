import logging
import socket
import threading

from rfs_server.commands.handlers_dispatch import COMMAND_HANDLERS
from rfs_server.commands.write import IncompleteBodyError
from rfs_server.config import ServerConfig
from rfs_server.entities.client_connection import ClientConnection
from rfs_server.entities.command import Command
from rfs_server.entities.file_system_manager import FileSystemManager
from rfs_server.entities.response import ResponseWriter

logger = logging.getLogger("rfs.server.file_server")

# Intervalo con el que el loop de accept revisa si se pidió stop()
ACCEPT_POLL_INTERVAL = 0.5


class FileServer:
    """Listener TCP: acepta conexiones y lanza un hilo por cliente.

    - El número de clientes atendidos a la vez está acotado por
      `config.max_connections` (0 = sin límite). Cuando se alcanza el límite
      el loop deja de aceptar y los nuevos clientes esperan en el backlog.
    - El filesystem es el único recurso compartido entre conexiones.
    """

    def __init__(self, config: ServerConfig = None, fs_manager: FileSystemManager = None):
        self.config = config or ServerConfig()
        self.fs_manager = fs_manager or FileSystemManager()

        self.server_sock = None
        self._stop_event = threading.Event()
        self._accept_thread = None
        self._slots = threading.BoundedSemaphore(self.config.max_connections) if self.config.max_connections else None

        self._clients_lock = threading.Lock()
        self._active_clients = 0

    # ---------------- ciclo de vida ----------------
    def start(self):
        """Crea el socket de escucha. Los errores de bind se propagan (fatales)."""
        server_sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            server_sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server_sock.bind((self.config.host, self.config.port))
            server_sock.listen(self.config.backlog)
            server_sock.settimeout(ACCEPT_POLL_INTERVAL)
        except OSError:
            server_sock.close()
            raise

        self.server_sock = server_sock
        self._stop_event.clear()
        logger.info("File server listening on %s:%d (%s)", self.address[0], self.address[1], self.config)
        return self

    @property
    def address(self):
        """(host, port) efectivos; útil cuando se configuró el puerto 0."""
        if self.server_sock is None:
            return self.config.host, self.config.port
        return self.server_sock.getsockname()[:2]

    @property
    def active_clients(self):
        with self._clients_lock:
            return self._active_clients

    def serve_forever(self):
        """Loop de accept; retorna cuando se llama a stop()."""
        if self.server_sock is None:
            self.start()

        try:
            while not self._stop_event.is_set():
                if not self._acquire_slot():
                    break

                try:
                    client_sock, client_addr = self.server_sock.accept()

                except socket.timeout:
                    self._release_slot()
                    continue

                except OSError as e:
                    self._release_slot()
                    if self._stop_event.is_set():
                        break
                    logger.exception("Error accepting connection: %s", e)
                    continue

                logger.info("Accepted connection from %s", client_addr)
                t = threading.Thread(target=self._run_client, args=(client_sock, client_addr), daemon=True)
                t.start()

        finally:
            self._close_listener()
            logger.info("Connection listener stopped")

    def serve_in_background(self):
        """Arranca serve_forever() en un hilo daemon y lo retorna."""
        if self.server_sock is None:
            self.start()
        self._accept_thread = threading.Thread(target=self.serve_forever, name="rfs-listener", daemon=True)
        self._accept_thread.start()
        return self._accept_thread

    def stop(self, timeout: float = 5.0):
        """Detiene el loop de accept. Las conexiones abiertas terminan por su cuenta."""
        self._stop_event.set()
        if self._accept_thread is not None and self._accept_thread is not threading.current_thread():
            self._accept_thread.join(timeout)
            self._accept_thread = None
        else:
            self._close_listener()

    # ---------------- internos ----------------
    def _acquire_slot(self):
        if self._slots is None:
            return True
        while not self._stop_event.is_set():
            if self._slots.acquire(timeout=ACCEPT_POLL_INTERVAL):
                return True
        return False

    def _release_slot(self):
        if self._slots is not None:
            self._slots.release()

    def _close_listener(self):
        if self.server_sock is not None:
            try:
                self.server_sock.close()
            except OSError:
                logger.debug("Error closing listening socket", exc_info=True)

    def _run_client(self, client_sock, client_addr):
        with self._clients_lock:
            self._active_clients += 1
        try:
            client_handler(client_sock, client_addr, self.fs_manager, self.config)
        finally:
            with self._clients_lock:
                self._active_clients -= 1
            self._release_slot()


def client_handler(client_socket: socket.socket, client_address, fs_manager: FileSystemManager, config: ServerConfig):
    """Crear la conexión y ejecutar el dispatcher para el cliente."""
    logger.info("Handling new client %s", client_address)
    client_socket.settimeout(config.socket_timeout)
    connection = ClientConnection(client_socket, client_address)

    try:
        command_dispatcher(connection, fs_manager, config.framing)

    except socket.timeout:
        logger.info("Client %s idle for more than %ss, closing connection", client_address, config.idle_timeout)

    except IncompleteBodyError as e:
        logger.warning("Client %s: %s", client_address, e)

    except OSError:
        logger.exception("Network error while handling client %s", client_address)

    finally:
        connection.close()
        logger.info("Connection closed for %s", client_address)


def command_dispatcher(connection: ClientConnection, fs_manager: FileSystemManager, framing: str):
    """Leer líneas de la conexión, parsear y despachar handlers de forma secuencial.

    La siguiente línea se lee sólo después de que la respuesta del comando
    actual fue escrita completa (terminada en END).
    """
    while True:
        line = connection.read_line()

        if line is None:
            logger.info("Client %s closed the connection", connection.client_address)
            return

        command = Command(line)
        response = ResponseWriter(connection, framing)
        handler = COMMAND_HANDLERS.get(command.get_name())

        if handler is None:
            logger.warning("Invalid command from %s: %r", connection.client_address, line)
            response.error("Invalid command.")
            continue

        logger.info("Received command from %s: %s", connection.client_address, command)

        try:
            handler(command, connection, response, fs_manager)

        except (OSError, IncompleteBodyError):
            raise

        except Exception:
            logger.exception("Error handling command from %s: %s", connection.client_address, line)
            if not response.finished:
                response.error("Internal server error")


__all__ = [
    'FileServer',
    'client_handler',
    'command_dispatcher',
]
