import logging

from rfs_server.entities.response import SENTINEL

logger = logging.getLogger("rfs.commands.write")


class IncompleteBodyError(Exception):
    """El stream terminó antes de recibir la línea END que cierra el cuerpo."""
    pass


def handle_write(command, connection, response, fs_manager):
    """Maneja comando WRITE <file> - recibe el cuerpo hasta END y lo agrega al archivo.

    El cuerpo siempre se consume completo, aunque el destino no pueda
    escribirse, para que sus líneas no se interpreten como comandos. El
    contenido se publica (append) sólo cuando llega END.

    Si el cliente nunca envía END y no cierra la conexión, el handler queda
    bloqueado hasta el idle timeout de la conexión (indefinidamente si está
    deshabilitado).
    """
    path = command.get_argument()

    # 1. Preparar el temporal; si falla se drena el cuerpo igualmente
    staged = None
    failure = None
    try:
        staged = fs_manager.stage_write(path)
    except OSError as e:
        failure = e
        logger.warning("WRITE %s: unable to stage body: %s", path, e)

    # 2. Modo cuerpo: cada línea es contenido hasta END
    try:
        while True:
            line = connection.read_line()

            if line is None:
                raise IncompleteBodyError(f"Connection closed before END while writing {path}")

            if line == SENTINEL:
                break

            if staged is not None and failure is None:
                try:
                    staged.write_line(response.unescape(line))
                except OSError as e:
                    failure = e
                    logger.warning("WRITE %s: write to staging file failed: %s", path, e)

    except Exception:
        # EOF, timeout o error de red: se descarta el cuerpo y la conexión termina
        if staged is not None:
            staged.discard()
        raise

    # 3. Publicar
    if failure is None:
        try:
            staged.commit()
        except OSError as e:
            failure = e
            logger.warning("WRITE %s: commit failed: %s", path, e)
    elif staged is not None:
        staged.discard()

    if failure is not None:
        response.error("Unable to write file")
        return

    response.complete("WRITE COMPLETE")
    logger.info("WRITE %s: %d lines appended by %s", path, staged.lines_written, connection.client_address)
