import argparse
import logging
import os
import signal
import sys

from rfs_server.config import FRAMING_MODES, ServerConfig
from rfs_server.entities.file_server import FileServer

logger = logging.getLogger("rfs.server.main")

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="rfs-server", description="Remote filesystem access server")
    parser.add_argument("--host", help="Dirección de escucha (RFS_HOST, default 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Puerto TCP (RFS_PORT, default 6789)")
    parser.add_argument("--max-connections", type=int, help="Clientes simultáneos, 0 = sin límite (RFS_MAX_CONNECTIONS)")
    parser.add_argument("--idle-timeout", type=float, help="Segundos de inactividad antes de cerrar un cliente, 0 = nunca (RFS_IDLE_TIMEOUT)")
    parser.add_argument("--framing", choices=FRAMING_MODES, help="Framing de las respuestas (RFS_FRAMING)")
    parser.add_argument("--log-level", default=os.getenv("RFS_LOG_LEVEL", "INFO"),
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def build_config(args, environ=None):
    """Combina variables de entorno y flags; los flags tienen prioridad."""
    return ServerConfig.from_env(environ, host=args.host, port=args.port, max_connections=args.max_connections,
                                 idle_timeout=args.idle_timeout, framing=args.framing)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format=LOG_FORMAT)

    try:
        config = build_config(args)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    server = FileServer(config)

    def _handle_sigint(signum, frame):
        logger.info("Shutting down listener")
        server.stop()

    signal.signal(signal.SIGINT, _handle_sigint)

    try:
        server.start()
    except OSError as e:
        logger.error("Unable to start listener on %s:%s: %s", config.host, config.port, e)
        return 1

    server.serve_forever()
    return 0


if __name__ == "__main__":
    sys.exit(main())
