import logging

from rfs_server.entities.file_system_manager import NotARegularFileError

logger = logging.getLogger("rfs.commands.copy")


def handle_copy(command, connection, response, fs_manager):
    """Maneja comando COPY <source> <target> - copia el archivo sobrescribiendo el destino."""

    # 1. Validar argumentos
    if not command.require_args(2):
        response.error("Invalid arguments for copy command. Missing source or target file")
        return

    source, target = command.split_args()

    # 2. Validar origen
    try:
        fs_manager.validate_path(source, want="file")
    except (FileNotFoundError, NotARegularFileError):
        response.error("Source file does not exist")
        return
    except IsADirectoryError:
        response.error("Source path is a directory, not a file")
        return

    # 3. Validar el directorio que contendrá el destino
    try:
        fs_manager.validate_path(fs_manager.parent_of(target), want="dir")
    except (FileNotFoundError, NotADirectoryError):
        response.error("Destination directory does not exist")
        return

    # 4. Copiar
    try:
        fs_manager.copy_file(source, target)
    except OSError as e:
        logger.warning("COPY %s -> %s failed: %s", source, target, e)
        response.error("Unable to copy file")
        return

    response.complete("FILE COPIED")
