"""CredentialStore: password hashes and their verification.

The only component that sees a password hash. Plaintext passwords enter,
booleans and policy violations leave.

Flow (verify_password):
1. Load the stored hash (NotFoundError when the user has none)
2. Constant-time verify through the hashing adapter
3. On a match with a legacy or outdated hash, rehash and store the new
   hash only if the old one is still current
4. Return the match as a boolean (mismatch is not an error)
"""

from uuid import UUID

from personalpod_auth.core.enums import ErrorCode
from personalpod_auth.core.errors import NotFoundError, ValidationError
from personalpod_auth.core.result import Failure, Result, Success
from personalpod_auth.domain.protocols import (
    ClockProtocol,
    LoggerProtocol,
    PasswordCredentialRepository,
    PasswordHashingProtocol,
    RandomSourceProtocol,
)
from personalpod_auth.domain.value_objects import PasswordPolicy

_CREDENTIAL = "PasswordCredential"


class CredentialStore:
    """Stores and verifies password hashes.

    Attributes:
        policy: Complexity rules applied to every new password.
    """

    def __init__(
        self,
        *,
        credential_repo: PasswordCredentialRepository,
        password_service: PasswordHashingProtocol,
        clock: ClockProtocol,
        random_source: RandomSourceProtocol,
        logger: LoggerProtocol,
        policy: PasswordPolicy,
        dummy_hash: str | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            credential_repo: Password hash persistence.
            password_service: Hashing adapter (argon2id, bcrypt legacy).
            clock: Time source for updated_at stamps.
            random_source: Secure randomness for the dummy hash.
            logger: Structured logger.
            policy: Password complexity rules.
            dummy_hash: Precomputed hash used by `simulate_verification`.
                Computed on first use when omitted.
        """
        self._credential_repo = credential_repo
        self._password_service = password_service
        self._clock = clock
        self._random_source = random_source
        self._logger = logger
        self.policy = policy
        self._dummy_hash = dummy_hash

    def check_policy(self, plaintext: str) -> Result[None, ValidationError]:
        """Check a candidate password without storing anything."""
        violations = self.policy.violations(plaintext)
        if violations:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.PASSWORD_TOO_WEAK,
                    message="; ".join(violations),
                    field="password",
                    violations=tuple(violations),
                )
            )
        return Success(value=None)

    async def set_password(
        self, user_id: UUID, plaintext: str
    ) -> Result[None, ValidationError]:
        """Validate, hash and persist a password (create or replace).

        A rejected password never reaches the hasher or storage.
        """
        policy_result = self.check_policy(plaintext)
        if isinstance(policy_result, Failure):
            return policy_result

        password_hash = self._password_service.hash_password(plaintext)
        await self._credential_repo.upsert(user_id, password_hash, self._clock.now())
        self._logger.info("password_set", user_id=str(user_id))
        return Success(value=None)

    async def replace_password(
        self, user_id: UUID, plaintext: str
    ) -> Result[None, ValidationError | NotFoundError]:
        """Atomically replace an existing credential.

        Callers revoke the user's sessions afterwards.
        """
        policy_result = self.check_policy(plaintext)
        if isinstance(policy_result, Failure):
            return policy_result

        password_hash = self._password_service.hash_password(plaintext)
        replaced = await self._credential_repo.replace(
            user_id, password_hash, self._clock.now()
        )
        if not replaced:
            return Failure(error=self._not_found(user_id))

        self._logger.info("password_replaced", user_id=str(user_id))
        return Success(value=None)

    async def verify_password(
        self, user_id: UUID, plaintext: str
    ) -> Result[bool, NotFoundError]:
        """Verify a password.

        Returns:
            Success(True) on match, Success(False) on mismatch,
            Failure(NotFoundError) when the user has no credential.
        """
        stored_hash = await self._credential_repo.find_hash(user_id)
        if stored_hash is None:
            # Keep the timing of a real verification
            self.simulate_verification(plaintext)
            return Failure(error=self._not_found(user_id))

        if not self._password_service.verify_password(plaintext, stored_hash):
            return Success(value=False)

        if self._password_service.needs_rehash(stored_hash):
            await self._rehash(user_id, plaintext, stored_hash)

        return Success(value=True)

    def simulate_verification(self, plaintext: str) -> None:
        """Burn the CPU time of one verification against a dummy hash.

        Used on the login path for unknown accounts so response time does
        not reveal whether the account exists.
        """
        if self._dummy_hash is None:
            self._dummy_hash = self._password_service.hash_password(
                self._random_source.token_bytes(16).hex()
            )
        self._password_service.verify_password(plaintext, self._dummy_hash)

    async def _rehash(self, user_id: UUID, plaintext: str, stored_hash: str) -> None:
        new_hash = self._password_service.hash_password(plaintext)
        upgraded = await self._credential_repo.replace_if_matches(
            user_id, stored_hash, new_hash, self._clock.now()
        )
        if upgraded:
            self._logger.info("password_rehashed", user_id=str(user_id))

    @staticmethod
    def _not_found(user_id: UUID) -> NotFoundError:
        return NotFoundError(
            code=ErrorCode.CREDENTIAL_NOT_FOUND,
            message="No password credential for user",
            resource_type=_CREDENTIAL,
            resource_id=str(user_id),
        )
