"""CLI output and setup helpers."""
