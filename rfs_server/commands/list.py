import logging

logger = logging.getLogger("rfs.commands.list")


def handle_list(command, connection, response, fs_manager):
    """Maneja comando LIST <dir> - una línea por entrada inmediata del directorio."""
    path = command.get_argument()

    try:
        fs_manager.validate_path(path, want="dir")
    except FileNotFoundError:
        response.error("Path does not exist")
        return
    except NotADirectoryError:
        response.error("Path is not a directory")
        return

    try:
        entries = fs_manager.list_dir(path)
    except OSError as e:
        logger.warning("LIST failed for %s: %s", path, e)
        response.error("Unable to list directory")
        return

    response.send_lines(entries)
    response.end()
    logger.info("LIST %s: %d entries sent to %s", path, len(entries), connection.client_address)
