"""Command line interface for ContextSmith."""
