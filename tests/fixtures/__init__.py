# tests/fixtures/__init__.py
"""Shared test helpers for expunge tests.

Available helpers:
- database: in-memory ExposureDB factory and seeding
- stores: fault-injecting MemoryBlobStore
- clock: TickingClock / ManualClock for deadline tests
- runners: FakeCleanupRunner for the HTTP layer
"""
