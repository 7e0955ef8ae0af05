"""
FastAPI application entry point.
"""

import logging
from fastapi import FastAPI, Depends
from contextlib import asynccontextmanager

from app.api.v1.router import router as v1_router
from app.config import get_settings
from app.core.woo_client import WooClient
from app.deps import close_redis, get_woo_client
from app.schemas.common import HealthResponse, StoreHealthResponse


logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    # Startup
    yield
    # Shutdown
    await close_redis()


app = FastAPI(
    title="Shopping Feed API",
    description="Google Shopping product feed for a WooCommerce store",
    version="1.0.0",
    lifespan=lifespan
)

# Include routers
app.include_router(v1_router, prefix="/api/v1")


@app.get("/api/v1/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(ok=True)


@app.get("/api/v1/health/redis", tags=["health"])
async def health_check_redis():
    """Check Redis connection health."""
    from app.deps import get_redis
    try:
        redis = await get_redis()
        await redis.ping()
        return {"ok": True, "redis": "connected"}
    except Exception as e:
        return {"ok": False, "redis": "disconnected", "error": str(e)}


@app.get("/api/v1/health/store", response_model=StoreHealthResponse, tags=["health"])
async def health_check_store(client: WooClient = Depends(get_woo_client)):
    """Check the WooCommerce store connection."""
    ok, message = await client.test_connection()
    return StoreHealthResponse(ok=ok, message=message)


@app.get("/", tags=["root"])
async def root():
    """Root endpoint."""
    return {
        "message": "Shopping Feed API",
        "version": "1.0.0",
        "feed": "/api/v1/feeds/google.xml",
        "docs": "/docs"
    }
