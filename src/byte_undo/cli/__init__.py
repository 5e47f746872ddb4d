"""Command line front end for Byte-Undo."""

from byte_undo.cli.main import main

__all__ = ["main"]
