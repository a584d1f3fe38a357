"""
FastAPI application for the auth service.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.auth import router as auth_router
from config import Config
from db.engine import init_db
from keytoken.config import AuthConfig

logging.basicConfig(
    level=Config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown."""
    if AuthConfig.AUTH_STORE == "sql" and Config.is_sqlite():
        # Local SQLite databases are created on the fly; other backends go through Alembic
        init_db()
        logger.info("SQLite schema ensured at %s", Config.DATABASE_URL)
    logger.info("Auth service started with %s store", AuthConfig.AUTH_STORE)
    yield
    logger.info("Auth service stopped")


app = FastAPI(
    title="Key Token Auth API",
    description="Sign-up, sign-in and refresh token rotation",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
