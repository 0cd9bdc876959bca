"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from contractseal.config import Settings, get_settings
from contractseal.infrastructure.auth.provider import IdentityProvider
from contractseal.shared.context import Principal
from contractseal.shared.exceptions import (
    AuthenticationError,
    TokenExpiredError,
    TokenInvalidError,
)
from contractseal.shared.logging import get_logger

logger = get_logger(__name__)

# HTTP Bearer scheme
security = HTTPBearer(auto_error=False)


def build_identity_provider(settings: Settings) -> IdentityProvider:
    """Build the configured identity provider.

    Set AUTH_PROVIDER env var to "dev" for local testing without Supabase.
    """
    if settings.auth_provider == "dev":
        from contractseal.infrastructure.auth.dev import DevIdentityProvider

        return DevIdentityProvider()

    from contractseal.infrastructure.auth.supabase import SupabaseIdentityProvider

    return SupabaseIdentityProvider(settings)


def get_identity_provider(request: Request) -> IdentityProvider:
    """Get a cached identity provider instance (per FastAPI app)."""
    provider = getattr(request.app.state, "identity_provider", None)
    if provider is None:
        provider = build_identity_provider(get_settings())
        request.app.state.identity_provider = provider
    return provider


async def get_current_principal(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
) -> Principal:
    """Dependency resolving the bearer token to the calling principal."""
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        principal = await provider.verify_token(credentials.credentials)
    except TokenExpiredError:
        raise HTTPException(
            status_code=401,
            detail="Token expired. Please sign in again.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except TokenInvalidError as e:
        raise HTTPException(
            status_code=401,
            detail=str(e.message),
            headers={"WWW-Authenticate": "Bearer"},
        )
    except AuthenticationError as e:
        logger.warning("auth_failed", error=str(e))
        raise HTTPException(
            status_code=401,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )

    # Rate limiter keys on the principal when present
    request.state.principal = principal

    logger.debug("principal_authenticated", principal_id=principal.id)
    return principal


CurrentPrincipal = Annotated[Principal, Depends(get_current_principal)]
