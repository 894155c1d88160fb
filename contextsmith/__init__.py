"""ContextSmith - budgeted code context assembly for coding assistants."""

__version__ = "0.1.0"
