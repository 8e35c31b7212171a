"""Test suite for duocache.

Test Structure:
- unit/caching/: Entry store, codec, stream, barrier, encodings, expiry
- unit/io/: Real and fake filesystem implementations
- unit/config/: Config loading and store construction
- unit/utils/: Logging and timing utilities
- conftest.py: Shared fixtures (fake clock, fake filesystem, stores)
"""
