"""FastAPI application main entry point."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from dnote import __version__

from ..services.config import get_config
from ..services.database import init_database
from .middleware import register_error_handlers
from .routes import notes, system, users

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler to run startup tasks."""
    db_path = init_database()
    logger.info("Startup complete: database ready", extra={"db_path": str(db_path)})
    yield


app = FastAPI(
    title="dnote server",
    description="Notes, books and full-text search with highlighted excerpts",
    version=__version__,
    lifespan=lifespan,
)

config = get_config()

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(system.router, tags=["system"])
app.include_router(users.router, tags=["users"])
app.include_router(notes.router, tags=["notes"])


__all__ = ["app"]
