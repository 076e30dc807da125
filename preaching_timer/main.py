"""FastAPI application entry point for the preaching timer service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from preaching_timer.config import get_settings
from preaching_timer.timer.config_resolver import PRESET_MINUTES, PRESETS, preset_settings
from preaching_timer.utils.logger import setup_logging
from preaching_timer.ws.handler import TimerHandler

# Setup logging
settings = get_settings()
setup_logging(settings.log_level, json_logs=settings.log_json)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Preaching timer starting")
    yield
    logger.info("Preaching timer shutting down")


app = FastAPI(
    title="Preaching Timer",
    description="Three-phase countdown timer for live speaking sessions",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS - use configured origins
allowed_origins = [
    origin.strip()
    for origin in settings.allowed_origins.split(",")
    if origin.strip()
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)


@app.get("/api/health")
async def health():
    return {"status": "ok"}


@app.get("/api/presets")
async def presets():
    """Preset phase splits and quick-pick durations for the duration picker."""
    return {
        "settings": {name: preset.model_dump() for name, preset in PRESETS.items()},
        "minutes": PRESET_MINUTES,
    }


@app.get("/api/presets/{name}")
async def preset(name: str):
    try:
        return preset_settings(name).model_dump()
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown preset: {name}")


@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    """WebSocket endpoint for browser client connections."""
    await ws.accept()
    logger.info("Browser client connected")

    handler = TimerHandler(ws)
    await handler.run()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "preaching_timer.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
