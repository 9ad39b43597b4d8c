# tests/property/__init__.py
"""Property-based tests for expunge.

Property-based testing validates invariants that must hold for ALL inputs,
not just the specific examples we think of. For a deletion service the
invariants that matter are: nothing inside its retention window is ever
deleted, and everything past it is eventually deleted.
"""
