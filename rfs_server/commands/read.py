import logging

from rfs_server.entities.file_system_manager import NotARegularFileError

logger = logging.getLogger("rfs.commands.read")


def handle_read(command, connection, response, fs_manager):
    """Maneja comando READ <file> - envía el contenido línea por línea."""
    path = command.get_argument()

    # 1. Validar que el path existe y es un archivo
    try:
        fs_manager.validate_path(path, want="file")
    except FileNotFoundError:
        response.error("Path or file does not exist")
        return
    except (IsADirectoryError, NotARegularFileError):
        response.error("Path is not a file")
        return

    # 2. Streaming del contenido
    sent = 0
    try:
        for line in fs_manager.read_lines(path):
            response.send_line(line)
            sent += 1

    except OSError as e:
        # Puede ocurrir a mitad del streaming: las líneas ya enviadas quedan
        # seguidas de la línea de error y del centinela.
        logger.warning("READ failed for %s after %d lines: %s", path, sent, e)
        response.error("Unable to read file")
        return

    response.end()
    logger.info("READ %s: %d lines sent to %s", path, sent, connection.client_address)
