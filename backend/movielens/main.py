"""
MovieLens API — FastAPI application entry point.

Routers are registered here. Each service lives in movielens/api/.
"""
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from movielens.api import catalog, profile
from movielens.api import reviews as reviews_api
from movielens.core.config import settings
from movielens.core.logging import configure_logging
from movielens.db.session import init_db

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    logger.info("startup", env=settings.APP_ENV, tmdb_configured=bool(settings.TMDB_API_KEY))
    yield


app = FastAPI(
    title="MovieLens API",
    description="Movie discovery over TMDB with device-local profile and reviews.",
    version="0.1.0",
    docs_url="/docs" if settings.ENABLE_DOCS else None,
    redoc_url="/redoc" if settings.ENABLE_DOCS else None,
    lifespan=lifespan,
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(catalog.router,     prefix="/catalog", tags=["catalog"])
app.include_router(profile.router,     prefix="/profile", tags=["profile"])
app.include_router(reviews_api.router, prefix="/reviews", tags=["reviews"])


# ── Health check ──────────────────────────────────────────────────────────────
@app.get("/health", tags=["system"])
def health_check() -> dict:
    """Liveness probe. Returns 200 when the server is up."""
    return {"status": "ok", "version": app.version, "env": settings.APP_ENV}
