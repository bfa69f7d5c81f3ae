"""Notification adapters.

- StubNotifier: structured-log only, for development and tests
"""

from personalpod_auth.infrastructure.email.stub_notifier import StubNotifier

__all__ = [
    "StubNotifier",
]
