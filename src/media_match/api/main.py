"""
Media Match API Server

FastAPI application that exposes the media match system
through REST API endpoints.
"""

import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from media_match.config import load_config
from media_match.engine.match_engine import MediaMatchSystem


# Global system instance (lazy initialized)
media_system: Optional[MediaMatchSystem] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler - the system is created on first use."""
    yield

    global media_system
    if media_system:
        await media_system.close()
        media_system = None


app = FastAPI(
    title="Media Match API",
    description="Upload media and inspect face/voice identity matches",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173", "http://localhost:3000", "http://127.0.0.1:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_system() -> MediaMatchSystem:
    """Get the global system instance, creating it on first use."""
    global media_system

    if media_system is not None:
        return media_system

    config = load_config()
    if not (config.llm.google_api_key or os.getenv("GOOGLE_API_KEY")):
        raise HTTPException(
            status_code=503,
            detail="API key not configured. Please set GOOGLE_API_KEY.",
        )

    try:
        media_system = MediaMatchSystem(config)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Failed to initialize media match system: {e}")

    return media_system


# Import and include routers
from media_match.api.routes import items, stats  # noqa: E402

app.include_router(items.router, prefix="/api/items", tags=["Items"])
app.include_router(stats.router, prefix="/api/stats", tags=["Stats"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Media Match API"}
