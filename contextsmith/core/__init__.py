"""Core types, configuration and utilities for ContextSmith."""
