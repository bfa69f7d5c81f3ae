"""Result types for railway-oriented programming.

Operations that can fail for an expected reason (wrong password, expired
token, policy violation) return a Result instead of raising. Callers
pattern-match on the outcome, which keeps every failure path explicit.

Usage:
    async def redeem(token: str) -> Result[UUID, InvalidTokenError]:
        ...

    match await vault.redeem(token, TokenKind.PASSWORD_RESET):
        case Success(value=user_id):
            ...
        case Failure(error=error):
            logger.warning("reset_token_rejected", reason=error.code.value)
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")  # Success type
E = TypeVar("E")  # Error type


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Represents a successful operation result.

    Attributes:
        value: The successful result value.
    """

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Represents a failed operation result.

    Attributes:
        error: The error that occurred.
    """

    error: E


type Result[T, E] = Success[T] | Failure[E]
