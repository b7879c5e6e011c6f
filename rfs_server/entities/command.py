VERBS = ("LIST", "READ", "WRITE", "CREATE_DIR", "COPY", "MOVE")


class Command:
    """Una línea del protocolo separada en verbo y argumento.

    El verbo se reconoce por prefijo exacto (sensible a mayúsculas): la línea
    debe ser el verbo solo o el verbo seguido de un espacio. El argumento es
    todo lo que sigue al primer espacio, sin recortar.
    """

    def __init__(self, raw_command):
        self.raw_command = raw_command
        self.parse_command()

    def parse_command(self):
        """Asigna `name` (None si la línea no empieza por un verbo conocido) y `argument`."""
        self.name = None
        self.argument = ""

        for verb in VERBS:
            if self.raw_command == verb:
                self.name = verb
                return
            if self.raw_command.startswith(verb + " "):
                self.name = verb
                self.argument = self.raw_command[len(verb) + 1:]
                return

    def __str__(self):
        return f"Command(name='{self.name}', argument='{self.argument}')"

    def get_name(self):
        """Devuelve el verbo, o None para un comando desconocido"""
        return self.name

    def get_argument(self):
        """Devuelve el argumento (puede ser cadena vacía)"""
        return self.argument

    def is_valid(self):
        return self.name is not None

    def split_args(self):
        """Separa el argumento por espacios (COPY / MOVE)"""
        return self.argument.split()

    def require_args(self, count):
        """Verifica si el argumento tiene exactamente 'count' tokens"""
        return len(self.split_args()) == count
