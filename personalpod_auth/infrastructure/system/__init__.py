"""Runtime adapters for time and randomness."""

from personalpod_auth.infrastructure.system.clock import SystemClock
from personalpod_auth.infrastructure.system.random_source import SecretsRandomSource

__all__ = ["SecretsRandomSource", "SystemClock"]
