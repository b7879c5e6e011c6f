"""
Core client logic for the remote filesystem service.
Includes the connection manager, response parser, and command handler.
"""

from .connection import FileServiceConnection, ProtocolError
from .commands import ClientCommandHandler
from .parser import Parser, ResponseStructure

__all__ = [
    "FileServiceConnection",
    "ProtocolError",
    "ClientCommandHandler",
    "Parser",
    "ResponseStructure"
]
