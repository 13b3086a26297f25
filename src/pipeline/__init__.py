# src/pipeline/__init__.py - v1
"""Plan building, scheduling, dispatch and aggregation."""
