"""Periodic purge of stale authentication records.

Deletes expired or consumed verification tokens, expired or revoked refresh
tokens, abandoned MFA enrollments and used backup codes. Safe to run
concurrently and repeatedly.

Usage:
    personalpod-auth-purge
"""

import asyncio

from personalpod_auth.application.dtos import MaintenanceReport
from personalpod_auth.core.container import (
    build_token_maintenance,
    get_database,
    get_logger,
)


async def run_purge() -> MaintenanceReport:
    """Run one purge pass in its own unit of work."""
    database = get_database()
    try:
        async with database.get_session() as session:
            return await build_token_maintenance(session).run()
    finally:
        await database.close()


def main() -> None:
    """Console entry point."""
    logger = get_logger()
    try:
        report = asyncio.run(run_purge())
    except Exception as exc:
        logger.error("purge_failed", error=str(exc), error_type=type(exc).__name__)
        raise SystemExit(1) from exc
    print(f"Purged {report.total} stale records")


if __name__ == "__main__":
    main()
