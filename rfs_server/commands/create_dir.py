import logging

logger = logging.getLogger("rfs.commands.create_dir")


def handle_create_dir(command, connection, response, fs_manager):
    """Maneja comando CREATE_DIR <dir> - crea el directorio y los padres que falten"""
    path = command.get_argument()

    try:
        created = fs_manager.make_dir(path)
    except FileExistsError:
        response.error("Path exists but is not a directory")
        return
    except OSError as e:
        logger.warning("CREATE_DIR failed for %s: %s", path, e)
        response.error("Unable to create directory")
        return

    if created:
        response.complete("DIRECTORY CREATED")
    else:
        response.complete("DIRECTORY ALREADY EXISTS")
