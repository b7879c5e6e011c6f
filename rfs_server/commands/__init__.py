__all__ = ["handle_list", "handle_read", "handle_write", "handle_create_dir", "handle_copy", "handle_move"]

def __getattr__(name: str):
	if name == "handle_list":
		from .list import handle_list
		return handle_list
	if name == "handle_read":
		from .read import handle_read
		return handle_read
	if name == "handle_write":
		from .write import handle_write
		return handle_write
	if name == "handle_create_dir":
		from .create_dir import handle_create_dir
		return handle_create_dir
	if name == "handle_copy":
		from .copy import handle_copy
		return handle_copy
	if name == "handle_move":
		from .move import handle_move
		return handle_move
	raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def __dir__():
	return __all__
