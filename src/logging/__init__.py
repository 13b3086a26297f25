# src/logging/__init__.py - v1
"""Logging setup and per-run log context."""
