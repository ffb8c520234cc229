"""
Scout Talent - FastAPI Backend
Main application entry point with health check and API routing.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import settings, validate_security_settings
from database import engine, Base
from logging_config import setup_logging
import models  # noqa: F401
from routers import (
    health,
    auth,
    profiles,
    media,
    discovery,
)
from services.errors import ServiceError
from services.event_bus import RedisEventBus

logger = logging.getLogger("scout.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown."""
    # Startup
    setup_logging()
    logger.info("Starting Scout Talent API")
    validate_security_settings()
    if settings.AUTO_CREATE_DB_SCHEMA:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database schema verified")
        except Exception as e:
            logger.warning("Database bootstrap skipped: %s", e)

    bus = RedisEventBus.from_url(settings.REDIS_URL)
    try:
        await bus.ping()
        app.state.event_bus = bus
        logger.info("Event bus connected")
    except Exception as e:
        # Uploads still complete; the upload event is skipped until the bus returns.
        logger.warning("Event bus unavailable, upload events disabled: %s", e)
        await bus.close()
        app.state.event_bus = None
    yield
    # Shutdown
    if app.state.event_bus is not None:
        await app.state.event_bus.close()
    await engine.dispose()
    logger.info("Shutting down API")


app = FastAPI(
    title="Scout Talent API",
    description="Football talent scouting: profiles, video uploads, moderation and discovery",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
app.include_router(media.router, prefix="/media", tags=["Media"])
app.include_router(discovery.router, prefix="/discovery", tags=["Discovery"])


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Scout Talent API",
        "version": "0.1.0",
        "status": "running"
    }
