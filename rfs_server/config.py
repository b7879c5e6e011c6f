import os

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 6789
DEFAULT_MAX_CONNECTIONS = 64
DEFAULT_IDLE_TIMEOUT = 300.0
DEFAULT_BACKLOG = 5

FRAMING_ESCAPED = "escaped"
FRAMING_LEGACY = "legacy"
FRAMING_MODES = (FRAMING_ESCAPED, FRAMING_LEGACY)


class ServerConfig:
    """Parámetros del listener, suministrados al arrancar.

    - host / port: dirección de escucha.
    - max_connections: conexiones simultáneas atendidas (0 = sin límite).
    - idle_timeout: segundos sin datos antes de cerrar un cliente (0 = nunca).
    - framing: "escaped" o "legacy" (ver entities.response).
    - backlog: cola de listen() del socket.
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                 max_connections: int = DEFAULT_MAX_CONNECTIONS,
                 idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
                 framing: str = FRAMING_ESCAPED, backlog: int = DEFAULT_BACKLOG):
        self.host = host
        self.port = int(port)
        self.max_connections = int(max_connections)
        self.idle_timeout = float(idle_timeout)
        self.framing = framing
        self.backlog = int(backlog)
        self.validate()

    def validate(self):
        """Lanza ValueError si algún parámetro está fuera de rango."""
        if not 0 <= self.port <= 65535:
            raise ValueError(f"Invalid port: {self.port}")
        if self.max_connections < 0:
            raise ValueError(f"Invalid max_connections: {self.max_connections}")
        if self.idle_timeout < 0:
            raise ValueError(f"Invalid idle_timeout: {self.idle_timeout}")
        if self.framing not in FRAMING_MODES:
            raise ValueError(f"Invalid framing mode: {self.framing!r}")
        if self.backlog < 1:
            raise ValueError(f"Invalid backlog: {self.backlog}")

    @classmethod
    def from_env(cls, environ=None, **overrides):
        """Construye la configuración desde variables RFS_*; `overrides` tiene prioridad."""
        env = os.environ if environ is None else environ
        values = {
            "host": env.get("RFS_HOST", DEFAULT_HOST),
            "port": env.get("RFS_PORT", DEFAULT_PORT),
            "max_connections": env.get("RFS_MAX_CONNECTIONS", DEFAULT_MAX_CONNECTIONS),
            "idle_timeout": env.get("RFS_IDLE_TIMEOUT", DEFAULT_IDLE_TIMEOUT),
            "framing": env.get("RFS_FRAMING", FRAMING_ESCAPED),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @property
    def socket_timeout(self):
        """Timeout para socket.settimeout(); None cuando está deshabilitado."""
        return self.idle_timeout or None

    def __str__(self):
        return (f"ServerConfig(host={self.host}, port={self.port}, max_connections={self.max_connections}, "
                f"idle_timeout={self.idle_timeout}, framing={self.framing})")
