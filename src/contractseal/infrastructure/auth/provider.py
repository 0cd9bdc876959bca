"""Abstract identity provider interface.

The contract core only needs "who is calling": a stable user id, an email
address and whether that email has been verified. Providers turn a bearer
token into that Principal.
"""

from abc import ABC, abstractmethod

from contractseal.shared.context import Principal


class IdentityProvider(ABC):
    """Abstract identity provider.

    Implementations:
    - SupabaseIdentityProvider: verifies Supabase-issued JWTs
    - DevIdentityProvider: local testing only
    """

    @abstractmethod
    async def verify_token(self, token: str) -> Principal:
        """Verify an access token and return the calling principal.

        Raises:
            TokenExpiredError: If the token has expired
            TokenInvalidError: If the token is invalid
            AuthenticationError: For other auth failures
        """
        pass

    async def close(self) -> None:
        """Release provider resources."""
        return None
