"""
Expunge: retention enforcement for exposure-tracing records.

Deletes records that have aged past their retention window, together with
the blobs they own, on behalf of an external scheduler.
"""

__version__ = "0.1.0"
