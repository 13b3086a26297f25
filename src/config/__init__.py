# src/config/__init__.py - v1
"""Settings and step-type constants."""
