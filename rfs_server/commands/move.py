import logging

logger = logging.getLogger("rfs.commands.move")


def handle_move(command, connection, response, fs_manager):
    """Maneja comando MOVE <source-file> <destination-dir>."""

    # 1. Validar argumentos
    if not command.require_args(2):
        response.error("Invalid move command")
        return

    source, destination = command.split_args()

    # 2. Verificar origen y destino antes de mover
    try:
        fs_manager.validate_path(source, want="file")
    except OSError:
        response.error("Source file does not exist or is not a file")
        return

    try:
        fs_manager.validate_path(destination, want="dir")
    except OSError:
        response.error("Destination directory does not exist")
        return

    # 3. Mover conservando el nombre del archivo
    try:
        target = fs_manager.move_file(source, destination)
    except OSError as e:
        logger.warning("MOVE %s -> %s failed: %s", source, destination, e)
        response.error("Unable to move file")
        return

    response.complete("FILE MOVED")
    logger.debug("MOVE %s placed at %s", source, target)
