"""FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from contractseal import __version__
from contractseal.api.middleware.auth import build_identity_provider
from contractseal.api.ratelimit import limiter, rate_limit_exceeded_handler
from contractseal.api.router import api_router
from contractseal.config import get_settings
from contractseal.infrastructure.store.factory import build_document_store, close_document_store
from contractseal.observability.metrics import setup_metrics
from contractseal.shared.exceptions import (
    AuthenticationError,
    ConflictError,
    ContractSealError,
    NotFoundError,
    PayloadError,
    StoreError,
    UnauthorizedError,
    ValidationError,
)
from contractseal.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown events."""
    setup_logging()
    logger.info("contractseal_starting", version=__version__)

    # Shared resources; tests may install their own before startup
    settings = get_settings()
    if getattr(app.state, "identity_provider", None) is None:
        app.state.identity_provider = build_identity_provider(settings)
    if getattr(app.state, "document_store", None) is None:
        app.state.document_store = await build_document_store(settings)

    yield

    logger.info("contractseal_stopping")
    await app.state.identity_provider.close()
    await close_document_store(app.state.document_store)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="contractseal API",
        description="Contract drafting and signing with encrypted contract payloads",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    if settings.is_production:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        )
    else:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api/v1")

    setup_metrics(app)

    return app


def _error_response(status_code: int, error: str, exc: ContractSealError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": exc.message,
            "details": exc.details,
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map each error kind to a status code and a JSON body."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        _ = request
        return _error_response(422, "validation_error", exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=422,
            content={
                "error": "validation_error",
                "message": "Request validation failed",
                "details": {"errors": jsonable_encoder(exc.errors())},
            },
        )

    @app.exception_handler(AuthenticationError)
    async def auth_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
        _ = request
        return _error_response(401, "authentication_error", exc)

    @app.exception_handler(UnauthorizedError)
    async def unauthorized_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
        _ = request
        return _error_response(403, "unauthorized", exc)

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        _ = request
        return _error_response(404, "not_found", exc)

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        _ = request
        return _error_response(409, "conflict", exc)

    @app.exception_handler(PayloadError)
    async def payload_error_handler(request: Request, exc: PayloadError) -> JSONResponse:
        _ = request
        # No details: they would describe the ciphertext.
        return JSONResponse(
            status_code=422,
            content={
                "error": "contract_inaccessible",
                "message": "This contract cannot be decrypted",
            },
        )

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=503,
            content={
                "error": "store_unavailable",
                "message": "The document store is unavailable. Please try again later.",
            },
        )

    @app.exception_handler(ContractSealError)
    async def contractseal_error_handler(request: Request, exc: ContractSealError) -> JSONResponse:
        _ = request
        logger.error("unhandled_error", error=exc.message, details=exc.details)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An internal error occurred",
            },
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        _ = request
        logger.exception("unexpected_error", error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An unexpected error occurred",
            },
        )


# Create app instance
app = create_app()
