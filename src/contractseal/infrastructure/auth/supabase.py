"""Supabase identity provider implementation."""

from jose import JWTError, jwt

from contractseal.config import Settings, get_settings
from contractseal.infrastructure.auth.provider import IdentityProvider
from contractseal.shared.context import Principal
from contractseal.shared.exceptions import TokenExpiredError, TokenInvalidError
from contractseal.shared.logging import get_logger

logger = get_logger(__name__)


class SupabaseIdentityProvider(IdentityProvider):
    """Verifies Supabase access tokens (HS256, shared JWT secret)."""

    def __init__(self, settings: Settings | None = None) -> None:
        settings = settings or get_settings()
        self.jwt_secret = settings.supabase_jwt_secret
        self.audience = settings.supabase_jwt_audience

    async def verify_token(self, token: str) -> Principal:
        """Verify Supabase JWT and extract the principal."""
        try:
            payload = jwt.decode(
                token,
                self.jwt_secret,
                algorithms=["HS256"],
                audience=self.audience,
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JWTError as e:
            logger.warning("jwt_decode_failed", error=str(e))
            raise TokenInvalidError("Token is invalid")

        user_id = payload.get("sub")
        email = payload.get("email")
        user_metadata = payload.get("user_metadata") or {}

        if not user_id or not email:
            raise TokenInvalidError("Token carries no user id or email")

        return Principal(
            id=user_id,
            email=email,
            email_verified=(
                payload.get("email_confirmed_at") is not None
                or user_metadata.get("email_verified") is True
            ),
            full_name=user_metadata.get("full_name"),
        )
