"""AccessTokenProtocol (port) for signed, stateless access tokens."""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from personalpod_auth.core.result import Result
from personalpod_auth.domain.entities import AccessTokenClaims
from personalpod_auth.domain.errors import ExpiredTokenError, InvalidTokenError


class AccessTokenProtocol(Protocol):
    """Access token codec.

    Validation is pure: signature and expiry only, no persistence access.
    Time is always passed in so expiry follows the injected clock.

    Implementations:
        - JWTService: personalpod_auth/infrastructure/security/
    """

    @property
    def expires_in_seconds(self) -> int:
        """Access token lifetime in seconds."""
        ...

    def generate_access_token(self, *, user_id: UUID, issued_at: datetime) -> str:
        """Mint an access token carrying user id, issue time and expiry."""
        ...

    def validate_access_token(
        self, token: str, *, now: datetime
    ) -> Result[AccessTokenClaims, ExpiredTokenError | InvalidTokenError]:
        """Verify integrity and expiry, then extract claims.

        Args:
            token: Encoded access token.
            now: Current time from the injected clock.

        Returns:
            Success(AccessTokenClaims) when valid.
            Failure(ExpiredTokenError) when the signature is good but expired.
            Failure(InvalidTokenError) for anything else.
        """
        ...
