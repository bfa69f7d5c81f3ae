"""Core enums package.

Usage:
    from personalpod_auth.core.enums import ErrorCode, Environment
"""

from personalpod_auth.core.enums.environment import Environment
from personalpod_auth.core.enums.error_code import ErrorCode

__all__ = ["ErrorCode", "Environment"]
