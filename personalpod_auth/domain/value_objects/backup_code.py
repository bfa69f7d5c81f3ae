"""Backup code display format.

Codes are 8 base32 characters shown as two dash-separated groups
(``K7QF-M2XA``). Users retype them with arbitrary spacing and case, so
lookups always go through `normalize_backup_code` first.
"""

import re

from personalpod_auth.core.constants import BACKUP_CODE_GROUP_SIZE

_NON_ALPHANUMERIC = re.compile(r"[^A-Za-z0-9]")


def format_backup_code(raw: str) -> str:
    """Group a raw code for display.

    Example:
        >>> format_backup_code("K7QFM2XA")
        'K7QF-M2XA'
    """
    return "-".join(
        raw[i : i + BACKUP_CODE_GROUP_SIZE]
        for i in range(0, len(raw), BACKUP_CODE_GROUP_SIZE)
    )


def normalize_backup_code(code: str) -> str:
    """Strip separators and whitespace and uppercase.

    Example:
        >>> normalize_backup_code(" k7qf-m2xa ")
        'K7QFM2XA'
    """
    return _NON_ALPHANUMERIC.sub("", code).upper()
