"""Health check endpoints."""

from fastapi import APIRouter, Request
from pydantic import BaseModel

from contractseal.config import get_settings
from contractseal.shared.exceptions import StoreError
from contractseal.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    document_store: str


class ReadyResponse(BaseModel):
    """Readiness check response."""

    ready: bool
    checks: dict[str, bool]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check - always returns OK if service is running."""
    from contractseal import __version__

    return HealthResponse(
        status="healthy",
        version=__version__,
        document_store=get_settings().document_store,
    )


@router.get("/ready", response_model=ReadyResponse)
async def readiness_check(request: Request) -> ReadyResponse:
    """Readiness check - verifies the document store is reachable."""
    checks: dict[str, bool] = {}

    store = getattr(request.app.state, "document_store", None)
    if store is None:
        checks["document_store"] = False
    else:
        try:
            await store.ping()
            checks["document_store"] = True
        except StoreError as e:
            logger.warning("document_store_health_check_failed", error=e.message)
            checks["document_store"] = False

    return ReadyResponse(ready=all(checks.values()), checks=checks)
