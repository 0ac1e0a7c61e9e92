"""
API layer for the Erlang acceptance engine.

External interfaces:
- CLI (command line interface)
- SDK (Python programmatic interface, see the package root)
"""

from .cli import cli, main as cli_main

__all__ = [
    "cli",
    "cli_main",
]
