# src/__init__.py - v1
"""releaseflow: dependency-ordered release pipelines."""
