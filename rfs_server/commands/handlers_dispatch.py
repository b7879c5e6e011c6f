from rfs_server.commands import *

# Diccionario de handlers
COMMAND_HANDLERS = {
    "LIST": handle_list,
    "READ": handle_read,
    "WRITE": handle_write,
    "CREATE_DIR": handle_create_dir,
    "COPY": handle_copy,
    "MOVE": handle_move,
}
