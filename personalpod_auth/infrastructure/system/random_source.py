"""CSPRNG adapter for RandomSourceProtocol."""

import secrets


class SecretsRandomSource:
    """Random bytes from the operating system CSPRNG via `secrets`."""

    def token_bytes(self, nbytes: int) -> bytes:
        return secrets.token_bytes(nbytes)
