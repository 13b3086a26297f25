# src/modules/__init__.py - v1
"""Action provider discovery and invocation."""
