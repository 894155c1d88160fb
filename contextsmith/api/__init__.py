"""External API surfaces for ContextSmith."""
