"""
kinesis_broadcast test suite.

This package contains:
- unit/: Unit tests (no external dependencies)
- integration/: Broadcast pipeline against in-memory and recording clients
- e2e/: End-to-end tests (LocalStack Kinesis)
"""
