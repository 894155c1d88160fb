"""Concrete provider implementations for ContextSmith."""
