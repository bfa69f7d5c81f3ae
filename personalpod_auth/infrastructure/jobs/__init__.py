"""Scheduled jobs."""

from personalpod_auth.infrastructure.jobs.purge import main, run_purge

__all__ = ["main", "run_purge"]
