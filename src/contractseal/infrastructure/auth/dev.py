"""Development identity provider for local testing.

Accepts bearer tokens of the form ``<user id>|<email>`` so two browser tabs
can act as sender and receiver. Any other token maps to a fixed dev user.
NEVER use in production!
"""

from contractseal.infrastructure.auth.provider import IdentityProvider
from contractseal.shared.context import Principal
from contractseal.shared.exceptions import TokenInvalidError
from contractseal.shared.logging import get_logger

logger = get_logger(__name__)

DEV_USER_ID = "dev-user"
DEV_USER_EMAIL = "dev@contractseal.local"


class DevIdentityProvider(IdentityProvider):
    """Development provider that trusts the token's contents."""

    async def verify_token(self, token: str) -> Principal:
        logger.warning(
            "dev_auth_used",
            message="Using development auth - DO NOT USE IN PRODUCTION",
        )

        if "|" not in token:
            return Principal(
                id=DEV_USER_ID,
                email=DEV_USER_EMAIL,
                email_verified=True,
                full_name="Dev User",
            )

        user_id, _, email = token.partition("|")
        if not user_id or not email:
            raise TokenInvalidError("Dev token must look like '<user id>|<email>'")
        return Principal(id=user_id, email=email, email_verified=True)
