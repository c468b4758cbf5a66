"""Model History Backend — FastAPI application entry point.

Serves the search-history panel of the 3D-model generation tool:
/api/history for the history list, /api/rodin, /api/status and /api/download
for the generation proxy.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.generation.router import router as generation_router
from app.history.router import router as history_router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(name)s | %(levelname)s | %(message)s",
)
logger = logging.getLogger("model_history")


# ═══════════════ LIFESPAN ═══════════════

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(
        "Model history backend starting | demo_mode=%s | history_backend=%s",
        settings.is_demo_mode, settings.history_backend,
    )

    # Redis is only needed by the key-value history backend
    if settings.history_backend == "redis":
        from app.services.cache import blob_cache
        redis_ok = await blob_cache.connect()
        logger.info("Redis: %s", "connected" if redis_ok else "unavailable (using in-memory fallback)")

    yield

    if settings.history_backend == "redis":
        from app.services.cache import blob_cache
        await blob_cache.disconnect()
    logger.info("Model history backend shutting down")


# ═══════════════ APP ═══════════════

app = FastAPI(
    title="Model History API",
    description="Search history and generation proxy for the 3D model generator",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_origins != ["*"],
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.include_router(history_router)
app.include_router(generation_router)


# ═══════════════ ENDPOINTS ═══════════════

@app.get("/health")
async def health():
    return {
        "status": "ok",
        "demo_mode": settings.is_demo_mode,
        "history_backend": settings.history_backend,
    }


def run():
    """Console entry point — serve the app with uvicorn."""
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
