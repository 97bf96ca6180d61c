"""Admin password validation.

The admin panel is gated by a shared password supplied through configuration.
Comparisons are constant-time so response timing does not leak prefixes.
"""

import hmac


class AdminPasswordValidator:
    """Validates the password sent with admin requests."""

    def __init__(self, passwords: list[str]) -> None:
        """Initialize validator with the accepted passwords.

        Args:
            passwords: Accepted password strings

        Raises:
            ValueError: If no non-empty password is provided
        """
        accepted = [p for p in passwords if p]
        if not accepted:
            raise ValueError("At least one admin password must be provided")

        self._passwords = [p.encode("utf-8") for p in accepted]

    def validate(self, password: str) -> bool:
        """Check a password.

        Args:
            password: Password sent by the client

        Returns:
            bool: True if it matches one of the accepted passwords
        """
        candidate = password.encode("utf-8")
        # No short-circuit: every configured password is compared
        matches = [hmac.compare_digest(candidate, accepted) for accepted in self._passwords]
        return any(matches)
