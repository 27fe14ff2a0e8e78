"""Toolsmith backend.

Define HTTP and command-line tools once, test them interactively, and
expose them to MCP clients.
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
