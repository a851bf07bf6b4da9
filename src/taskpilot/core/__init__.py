"""Ports and the per-invocation application state."""
