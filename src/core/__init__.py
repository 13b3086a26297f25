# src/core/__init__.py - v1
"""Domain models, errors and process/git/version helpers."""
