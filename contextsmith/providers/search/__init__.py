"""Search backend implementations."""

from .in_memory import InMemorySearchBackend

__all__ = ["InMemorySearchBackend"]
