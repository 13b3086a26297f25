# src/storage/__init__.py - v1
"""Component record storage."""
