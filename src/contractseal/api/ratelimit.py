"""Rate limiting for contract write endpoints.

Uses slowapi; storage comes from RATE_LIMIT_STORAGE_URI (in-memory by
default, any limits-compatible URI such as redis:// in multi-process setups).
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from contractseal.config import get_settings
from contractseal.shared.logging import get_logger

logger = get_logger(__name__)


def _get_rate_limit_key(request: Request) -> str:
    """Key on the authenticated principal, falling back to the client IP."""
    principal = getattr(request.state, "principal", None)
    if principal is not None:
        return f"principal:{principal.id}"
    return get_remote_address(request)


def _create_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=_get_rate_limit_key,
        storage_uri=settings.rate_limit_storage_uri,
        strategy="fixed-window",
    )


limiter = _create_limiter()


def rate_limit_write() -> str:
    """Limit for create/edit/sign; read lazily so tests can override settings."""
    return get_settings().rate_limit_write


def rate_limit_exceeded_handler(request: Request, exc: Exception) -> Response:
    """Custom handler for rate limit exceeded errors."""
    detail = str(exc.detail) if isinstance(exc, RateLimitExceeded) else str(exc)
    logger.warning(
        "rate_limit_exceeded",
        path=request.url.path,
        method=request.method,
        key=_get_rate_limit_key(request),
        limit=detail,
    )

    return JSONResponse(
        status_code=429,
        content={
            "error": "too_many_requests",
            "message": "Too many requests. Please wait a moment.",
            "detail": detail,
        },
        headers={"Retry-After": "60"},
    )
