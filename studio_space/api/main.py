"""FastAPI application setup and configuration."""

import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from studio_space import __version__
from studio_space.api.middleware.error_handler import (
    generic_exception_handler,
    http_exception_handler,
    integrity_exception_handler,
    permission_exception_handler,
    studio_space_exception_handler,
    validation_exception_handler,
)
from studio_space.api.middleware.logging import LoggingMiddleware, setup_logging
from studio_space.api.routes import auth, boards, colors, health, images, shares, tags, users
from studio_space.services.database import initialize_database, shutdown_database
from studio_space.services.exceptions import StudioSpaceError
from studio_space.services.google_auth import close_google_verifier

ROUTERS = (health, auth, users, boards, images, shares, tags, colors)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Set up logging and the database on startup; release clients on shutdown."""
    setup_logging(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "json"),
    )

    database_url = os.getenv("DATABASE_URL")
    if database_url:
        db_manager = initialize_database(database_url)
        await db_manager.initialize_async()
        if os.getenv("DATABASE_AUTO_CREATE", "false").lower() == "true":
            # Development convenience; deployed schemas come from Alembic
            await db_manager.create_tables()

    yield

    await close_google_verifier()
    await shutdown_database()


app = FastAPI(
    title="Studio Space API",
    description="Moodboard backend: boards, canvas images, likes, tags and share links",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# ========== Middleware ==========

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ALLOWED_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

# Added last so it wraps everything, CORS preflights included
app.add_middleware(LoggingMiddleware)

# ========== Exception Handlers ==========

app.add_exception_handler(StudioSpaceError, studio_space_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(IntegrityError, integrity_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(PermissionError, permission_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# ========== Routes ==========

for module in ROUTERS:
    app.include_router(module.router)

# Uploaded images are served straight from MEDIA_ROOT
media_root = Path(os.getenv("MEDIA_ROOT", "media"))
media_root.mkdir(parents=True, exist_ok=True)
app.mount(
    os.getenv("MEDIA_URL", "/media").rstrip("/"),
    StaticFiles(directory=media_root),
    name="media",
)


@app.get("/", tags=["root"], summary="API root")
async def root() -> dict:
    """Service name, version and where each resource group lives."""
    return {
        "service": "Studio Space API",
        "version": __version__,
        "documentation": "/docs",
        "resources": sorted({module.router.prefix for module in ROUTERS}),
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "studio_space.api.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "5000")),
        reload=True,
        log_level="info",
    )
