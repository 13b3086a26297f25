# src/pipeline/plugin_kit/__init__.py - v1
"""Handler interface for built-in and provider-backed step types."""
