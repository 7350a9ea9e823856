# app/main.py
"""
FastAPI application entry point.
Includes the optional API key middleware, typed error handlers, and all routers.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from app.routers import admin, availability, bookings, drivers, health, vehicles
from app.database import create_tables
from app.config import settings
from app.utils.exceptions import BookingEngineError
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="Fleet Booking API",
    description="Vehicle and driver booking administration: requests, approval, allocation and trip tracking.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],   # Restrict to the admin front-end origin in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── API Key Middleware ───────────────────────────────────────────────────────
# Public paths: requesters submit and look up bookings without a key.
PUBLIC_PREFIXES = ("/api/v1/bookings", "/api/v1/availability", "/api/v1/health",
                   "/docs", "/redoc", "/openapi.json")


class APIKeyMiddleware(BaseHTTPMiddleware):
    """
    Shared-key gate for admin and registry endpoints. Not a user model:
    one key from .env, checked against X-API-Key. Leave API_KEY empty to disable.
    """
    async def dispatch(self, request: Request, call_next):
        if not settings.API_KEY or request.url.path.startswith(PUBLIC_PREFIXES):
            return await call_next(request)

        api_key = request.headers.get("X-API-Key") or request.query_params.get("api_key")
        if api_key != settings.API_KEY:
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"detail": "Invalid or missing API key"},
            )
        return await call_next(request)


if settings.API_KEY:
    app.add_middleware(APIKeyMiddleware)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Exception Handlers ───────────────────────────────────────────────────────
@app.exception_handler(BookingEngineError)
async def booking_error_handler(request: Request, exc: BookingEngineError):
    logger.info(f"{request.method} {request.url.path} refused: {exc.code} — {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.to_dict()})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(bookings.router,     prefix="/api/v1", tags=["Bookings"])
app.include_router(availability.router, prefix="/api/v1", tags=["Availability"])
app.include_router(admin.router,        prefix="/api/v1", tags=["Admin"])
app.include_router(vehicles.router,     prefix="/api/v1", tags=["Vehicles"])
app.include_router(drivers.router,      prefix="/api/v1", tags=["Drivers"])
app.include_router(health.router,       prefix="/api/v1", tags=["Health"])


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("Fleet Booking API starting up...")
    create_tables()
    logger.info("Database tables ready")
    logger.info(f"Blocking statuses: creation={settings.CREATION_BLOCKING_STATUSES} "
                f"review={settings.REVIEW_BLOCKING_STATUSES}")
    logger.info(f"Listening on http://{settings.BACKEND_HOST}:{settings.BACKEND_PORT} — docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("Fleet Booking API shutting down...")
