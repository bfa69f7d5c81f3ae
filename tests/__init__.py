"""Test suite for the PersonalPod auth core.

Test structure follows the test pyramid:
- unit/: Unit tests - services with mocked ports, adapters in isolation
- integration/: Integration tests - repositories and full flows against a
  real SQLite database (aiosqlite), including concurrency scenarios
"""
