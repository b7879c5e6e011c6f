__all__ = ["ClientConnection", "Command", "FileServer", "FileSystemManager", "ResponseWriter"]

def __getattr__(name: str):
	if name == "ClientConnection":
		from .client_connection import ClientConnection
		return ClientConnection
	if name == "Command":
		from .command import Command
		return Command
	if name == "FileServer":
		from .file_server import FileServer
		return FileServer
	if name == "FileSystemManager":
		from .file_system_manager import FileSystemManager
		return FileSystemManager
	if name == "ResponseWriter":
		from .response import ResponseWriter
		return ResponseWriter
	raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

def __dir__():
	return __all__
