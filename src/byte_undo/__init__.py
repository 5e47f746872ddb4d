"""Byte-Undo - crash-safe, on-disk undo/redo for byte-oriented file editors."""

try:
    from importlib.metadata import version

    __version__ = version("byte-undo")
except Exception:
    __version__ = "0.0.0"  # Fallback for development/testing

__all__ = ["__version__"]
