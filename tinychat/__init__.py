"""A small TCP chat server and client with SQLite-backed accounts and history."""

__version__ = "0.1.0"

__all__ = ["__version__"]