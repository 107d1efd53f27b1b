"""
FastAPI application bootstrap with: \n
- Lifespan-managed initialization (database tables + completion client) \n
- CORS configured for the frontend \n
- JSON error bodies of the form {"error": <message>} \n
- Static file serving for the built frontend, when present \n
- Catch-all route to support client-side routing \n

Environment contract (from `settings`): \n
- INIT_MODE: if 'runtime', create tables and preload the completion client during startup. \n
- FRONTEND_URL: allowed CORS origin. \n
- FRONTEND_DIST_DIR: directory of the built frontend. \n
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from dxcases.api.completion_client import CompletionError, load_completion_client
from dxcases.api.fast_api import router
from dxcases.database.config.config import settings
from dxcases.database.config.connection_engine import init_db

logger = logging.getLogger("uvicorn")
"""Logger instance for capturing and emitting Uvicorn server logs."""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    App lifespan manager.

    Notes
    ------------
    - On startup (before yielding):
        * If INIT_MODE == 'runtime':
            - Create missing tables.
            - Build the completion client and attach it to `app.state`.
              A missing API key is logged; AI endpoints then answer 500.
    - On shutdown (after yielding): nothing to release.
    """
    if settings.INIT_MODE == "runtime":
        init_db()
        logger.info("Database tables ready.")
        try:
            app.state.completion_client = load_completion_client()
            logger.info(f"Completion client loaded (model={settings.OPEN_AI_MODEL}).")
        except CompletionError as e:
            logger.error(f"Completion client unavailable: {e}")
    else:
        logger.info(f"Skipping runtime init (INIT_MODE={settings.INIT_MODE}).")

    yield
    logger.info("App shutting down.")


# Instantiate the FastAPI app with lifespan handler
app = FastAPI(lifespan=lifespan)
"""Instantiates a FastAPI application object with the lifespan handler above."""

# -----------------------
# CORS configuration
# -----------------------
url = settings.FRONTEND_URL
"""The allowed frontend origin (URL) used for CORS configuration."""

app.add_middleware(
    CORSMiddleware,
    allow_origins=[url],      # Frontend origin
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# -----------------------
# Error bodies
# -----------------------
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "malformed body")
    detail = f"Invalid request: {location} {message}" if location else f"Invalid request: {message}"
    return JSONResponse(status_code=400, content={"error": detail})


@app.exception_handler(CompletionError)
async def completion_exception_handler(request: Request, exc: CompletionError):
    logger.error(f"Completion client error: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# -----------------------
# API routes
# -----------------------
app.include_router(router)

# -----------------------
# Static assets (built frontend)
# -----------------------
dist_dir = settings.FRONTEND_DIST_DIR
assets_dir = os.path.join(dist_dir, "assets")
index_file = os.path.join(dist_dir, "index.html")

if os.path.isdir(assets_dir):
    app.mount("/assets", StaticFiles(directory=assets_dir, html=True), name="static")

if os.path.isfile(index_file):
    # Catch-all route for client-side routing (must come after the API router)
    @app.get("/")
    @app.get("/{full_path:path}")
    async def serve_frontend(full_path: str = ""):
        """
        Serve the frontend's index.html for all non-API routes to support client-side routing.
        """
        return FileResponse(index_file)
