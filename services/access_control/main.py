"""
Access Control Service - Main Application
=========================================

FastAPI application exposing visitor access provisioning in external
access control systems.

Version: 0.1.0
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from services.access_control.dispatcher import get_dispatcher
from services.access_control.routes import acs_router
from shared.config import settings
from shared.logging import clear_context, get_logger, setup_logging
from shared.models import ErrorResponse, HealthResponse


setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="access-control",
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    dispatcher = get_dispatcher()
    logger.info(
        "access_control_service_starting",
        environment=settings.environment.value,
        port=settings.access_control_port,
        supported_types=dispatcher.registry.supported_types,
        reuse_sessions=settings.acs.reuse_sessions,
    )

    yield

    logger.info("access_control_service_shutting_down")
    await dispatcher.aclose()


app = FastAPI(
    title="Visitor Access Control Integration",
    description="Provision and revoke visitor credentials in external access control systems",
    version="0.1.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def reset_log_context(request: Request, call_next: Any) -> Any:
    """Drop per-request log context once the response is produced."""
    try:
        return await call_next(request)
    finally:
        clear_context()


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Service health check."""
    dispatcher = get_dispatcher()
    return HealthResponse(
        status="healthy",
        service="access-control",
        version="0.1.0",
        components={
            "dispatcher": {
                "status": "healthy",
                "supported_types": dispatcher.registry.supported_types,
                "simulated_vendors": not settings.is_production,
            },
        },
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "Visitor Access Control Integration",
        "version": "0.1.0",
        "docs": "/docs",
    }


app.include_router(acs_router, prefix="/api/v1")


# ============================================================================
# Error Handlers
# ============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render HTTP exceptions as ErrorResponse bodies."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    if isinstance(exc.detail, dict):
        body = ErrorResponse(**exc.detail)
    else:
        body = ErrorResponse(error=str(exc.detail))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    body = ErrorResponse(error="Internal server error", error_code="INTERNAL_ERROR")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(mode="json"),
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.access_control.main:app",
        host="0.0.0.0",
        port=settings.access_control_port,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
