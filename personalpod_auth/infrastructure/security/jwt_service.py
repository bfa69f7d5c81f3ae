"""JWT access token service (adapter).

Implements AccessTokenProtocol with PyJWT (HS256).

Token Structure:
    - sub: user id
    - iat / exp: issue and expiry (epoch seconds)
    - jti: unique token id (UUIDv7)
    - typ: "access" (rejects other JWTs signed with the same key)

Expiry is checked against the caller-supplied `now` (the injected clock),
not the host clock, so PyJWT's own time-based claim checks are disabled
and redone here.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

import jwt
from jwt.exceptions import InvalidTokenError as JWTInvalidTokenError
from uuid_extensions import uuid7

from personalpod_auth.core.constants import MIN_JWT_SECRET_LENGTH
from personalpod_auth.core.result import Failure, Result, Success
from personalpod_auth.domain.entities import AccessTokenClaims
from personalpod_auth.domain.errors import ExpiredTokenError, InvalidTokenError

_ACCESS_TOKEN_TYPE = "access"


class JWTService:
    """Signs and validates access tokens.

    Usage:
        service = JWTService(secret_key=settings.secret_key, expiration_minutes=15)
        token = service.generate_access_token(user_id=user.id, issued_at=clock.now())
        match service.validate_access_token(token, now=clock.now()):
            case Success(value=claims):
                ...
    """

    def __init__(
        self,
        secret_key: str,
        expiration_minutes: int = 15,
        algorithm: str = "HS256",
    ) -> None:
        """Initialize JWT service.

        Args:
            secret_key: HMAC signing key, at least 32 characters.
            expiration_minutes: Access token lifetime.
            algorithm: HMAC algorithm name.

        Raises:
            ValueError: If secret_key is too short.
        """
        if len(secret_key) < MIN_JWT_SECRET_LENGTH:
            msg = "JWT secret key must be at least 32 bytes (256 bits)"
            raise ValueError(msg)

        self._secret_key = secret_key
        self._expiration_minutes = expiration_minutes
        self._algorithm = algorithm

    @property
    def expires_in_seconds(self) -> int:
        return self._expiration_minutes * 60

    def generate_access_token(self, *, user_id: UUID, issued_at: datetime) -> str:
        expires_at = issued_at + timedelta(minutes=self._expiration_minutes)
        payload = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": str(uuid7()),
            "typ": _ACCESS_TOKEN_TYPE,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def validate_access_token(
        self, token: str, *, now: datetime
    ) -> Result[AccessTokenClaims, ExpiredTokenError | InvalidTokenError]:
        """Validate signature, type and expiry, then extract claims.

        Never touches persistence.
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": ["sub", "iat", "exp", "jti"],
                },
            )
        except JWTInvalidTokenError:
            return Failure(error=InvalidTokenError())

        if payload.get("typ") != _ACCESS_TOKEN_TYPE:
            return Failure(error=InvalidTokenError())

        try:
            user_id = UUID(str(payload["sub"]))
            issued_at = datetime.fromtimestamp(int(payload["iat"]), UTC)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
        except (TypeError, ValueError):
            return Failure(error=InvalidTokenError())

        if now >= expires_at:
            return Failure(error=ExpiredTokenError())

        return Success(
            value=AccessTokenClaims(
                user_id=user_id,
                issued_at=issued_at,
                expires_at=expires_at,
                token_id=str(payload["jti"]),
            )
        )
