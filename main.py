"""
FastAPI application entrypoint.
"""
from fastapi import FastAPI
from contextlib import asynccontextmanager

from api.routes import payments as payments_routes
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging
from domain.common.exceptions import BusinessException
from infrastructure.external.payments import (
    load_payment_providers,
    shutdown_payment_providers,
)


# Configure logging explicitly at the entrypoint
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle."""
    # Providers with missing credentials are reported, not fatal; requests
    # against them fail with PROVIDER_NOT_REGISTERED until configured.
    try:
        providers = load_payment_providers(container={"logger": logger})
        logger.info("payment_providers_loaded", providers=sorted(providers))
    except BusinessException as exc:
        logger.error("payment_providers_load_failed", error=exc.message, code=int(exc.code))

    yield

    await shutdown_payment_providers()
    logger.info("application_shutdown", message="Application shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Razorpay payment provider for a commerce payment module",
)

# Middleware runs bottom-up: RequestID first so logs carry request_id
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

register_exception_handlers(app)

app.include_router(payments_routes.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
async def root():
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "docs": "/docs",
            "redoc": "/redoc"
        },
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint."""
    return success_response(data={"status": "healthy"})


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
