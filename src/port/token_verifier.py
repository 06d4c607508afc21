from typing import Any, Protocol


class TokenVerifier(Protocol):
    """Protocol for bearer token verification (signature, audience, issuer)."""
    def verify(self, token: str) -> dict[str, Any]:
        """Verify the token and return its claims.

        Raises:
            AuthenticationError: token is malformed or fails verification
            IdentityProviderError: signing keys could not be fetched
        """
        ...
