# src/expunge/core/__init__.py
"""Core infrastructure: configuration, logging, storage and the retention engine."""
