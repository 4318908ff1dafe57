"""
FastAPI Application Entry Point

Food Ordering API - storefront and admin backend.
Supports both Mock services (development) and Real APIs (production).

Endpoints:
    - /api/user: Registration and login
    - /api/food: Catalog listing and admin management
    - /api/cart: Per-user cart
    - /api/order: Checkout, payment verification and fulfilment
    - /images: Uploaded food images
    - GET /health: Liveness check
    - GET /metrics: Prometheus exposition
"""

import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles
from prometheus_client import CONTENT_TYPE_LATEST, Gauge, generate_latest

from food_api.api import cart, food, orders, users
from food_api.core.config import get_settings, setup_logging
from food_api.core.errors import AppError
from food_api.database import engine, init_db
from food_api.schemas import HealthResponse
from food_api.services.notifications import get_notification_service
from food_api.services.payment import get_payment_service

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

UPTIME_GAUGE = Gauge("process_uptime_seconds", "Process uptime in seconds")
UPTIME_GAUGE.set_function(lambda: time.monotonic() - STARTED_AT)


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    logger.info("=" * 60)
    logger.info(f"Starting {settings.app_name}")
    logger.info(f"   Version: {settings.app_version}")
    logger.info(f"   Environment: {settings.env_mode.value}")
    logger.info(f"   Debug: {settings.debug}")
    logger.info("=" * 60)

    await init_db()
    Path(settings.upload_dir).mkdir(parents=True, exist_ok=True)

    payment_service = get_payment_service()
    notification_service = get_notification_service()
    logger.info(f"Payment Service: {payment_service.provider_name}")
    logger.info(f"Notification Service: {notification_service.provider_name}")
    logger.info(f"Payment failure policy: {settings.payment_failure_policy.value}")

    if settings.use_real_services:
        missing = settings.validate_production_config()
        if missing:
            logger.warning(f"Missing production config: {missing}")

    logger.info("Application ready")

    yield

    logger.info("Shutting down...")
    await engine.dispose()
    logger.info("Cleanup complete")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description="Food ordering storefront API: users, catalog, carts, orders and checkout.",
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(users.router)
app.include_router(food.router)
app.include_router(cart.router)
app.include_router(orders.router)
app.mount(
    "/images",
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="images",
)


# =============================================================================
# ROOT, HEALTH & METRICS
# =============================================================================

@app.get("/", response_class=PlainTextResponse, tags=["Root"])
async def root() -> str:
    return "API Working"


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="Liveness check",
)
async def health_check() -> HealthResponse:
    """Report that the process is serving requests. Dependencies are not probed."""
    return HealthResponse(
        status="UP",
        timestamp=datetime.now(timezone.utc),
        uptime=round(time.monotonic() - STARTED_AT, 3),
    )


@app.get("/metrics", tags=["Health"], include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render domain errors as {success: false, error, message}."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} - {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code} - {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    return JSONResponse(
        status_code=422,
        content={
            "success": False,
            "error": "validation_error",
            "message": message,
            "detail": jsonable_encoder(errors),
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "internal_error",
            "message": str(exc) if settings.debug else "An unexpected error occurred",
        },
    )


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "food_api.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
