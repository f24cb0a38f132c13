"""Shared internals: optional dependency management and structural protocols."""
