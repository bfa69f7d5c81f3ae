"""Password policy with complexity rules.

Immutable value object that reports every rule a candidate password
breaks, so validation failures can enumerate the specific violations
instead of stopping at the first one.
"""

from dataclasses import dataclass

from personalpod_auth.core.constants import PASSWORD_MAX_LENGTH


@dataclass(frozen=True, slots=True)
class PasswordPolicy:
    """Password complexity requirements.

    Password Requirements:
        - At least `min_length` characters (default 8)
        - At most `max_length` characters
        - At least one uppercase letter
        - At least one lowercase letter
        - At least one digit
        - At least one symbol (any character that is not a letter, digit
          or whitespace)

    Attributes:
        min_length: Minimum accepted length.
        max_length: Maximum accepted length.

    Example:
        >>> PasswordPolicy().violations("Aa1!aaaa")
        []
        >>> PasswordPolicy(min_length=12).violations("weak")
        ['Password must be at least 12 characters', 'Password must contain an uppercase letter', 'Password must contain a digit', 'Password must contain a symbol']
    """

    min_length: int = 8
    max_length: int = PASSWORD_MAX_LENGTH

    def violations(self, plaintext: str) -> list[str]:
        """Return every rule the password breaks (empty when acceptable).

        Args:
            plaintext: Candidate password.

        Returns:
            Human-readable rule descriptions, in check order.
        """
        problems: list[str] = []

        if len(plaintext) < self.min_length:
            problems.append(f"Password must be at least {self.min_length} characters")
        if len(plaintext) > self.max_length:
            problems.append(f"Password must be at most {self.max_length} characters")
        if not any(c.isupper() for c in plaintext):
            problems.append("Password must contain an uppercase letter")
        if not any(c.islower() for c in plaintext):
            problems.append("Password must contain a lowercase letter")
        if not any(c.isdigit() for c in plaintext):
            problems.append("Password must contain a digit")
        if not any(not c.isalnum() and not c.isspace() for c in plaintext):
            problems.append("Password must contain a symbol")

        return problems

    def is_satisfied_by(self, plaintext: str) -> bool:
        """Check whether the password meets every rule."""
        return not self.violations(plaintext)
