"""FastAPI application factory for the purchase order fulfillment API."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError

from src.api.v1 import v1_router
from src.config import settings
from src.database.engine import engine
from src.exceptions import AppException, ConflictException
from src.middleware.rate_limit import limiter
from src.middleware.request_id import RequestIdMiddleware
from src.schemas.responses import ErrorBody, ErrorResponse

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting PO fulfillment API (%s)", settings.environment)
    yield
    await engine.dispose()


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: list | None = None,
) -> JSONResponse:
    """Render the ``{"error": {...}}`` envelope shared by every failure."""
    body = ErrorResponse(
        error=ErrorBody(
            code=code,
            message=message,
            details=details or [],
            request_id=_request_id(request),
        )
    )
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


def _register_exception_handlers(application: FastAPI) -> None:
    @application.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return _error_response(request, exc.status_code, exc.code, exc.message, exc.details)

    @application.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = [
            {
                "field": ".".join(str(loc) for loc in err.get("loc", []) if loc != "body"),
                "message": err.get("msg", ""),
            }
            for err in exc.errors()
        ]
        return _error_response(request, 422, "VALIDATION_ERROR", "Validation failed", details)

    @application.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
        # Unique keys and foreign keys the services did not pre-check
        logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
        return _error_response(
            request,
            ConflictException.status_code,
            ConflictException.code,
            "The change conflicts with existing records.",
        )

    @application.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        return _error_response(request, 429, "RATE_LIMITED", str(exc.detail))

    @application.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled exception: %s", exc)
        return _error_response(request, 500, "INTERNAL_ERROR", "An unexpected error occurred.")


def create_app() -> FastAPI:
    application = FastAPI(
        title="Mijenro PO Fulfillment API",
        description=(
            "Apparel purchase orders from PO ingestion through shipment, "
            "delivery and receivable/payable settlement."
        ),
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )
    application.state.limiter = limiter

    # Last added = outermost; request ids must exist before anything logs
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.add_middleware(RequestIdMiddleware)

    application.include_router(v1_router)
    _register_exception_handlers(application)

    @application.get("/health")
    async def health_check() -> dict:
        return {"status": "ok"}

    return application


app = create_app()
