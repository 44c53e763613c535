"""
Top 10 Scraper API - FastAPI application.

Provides endpoints for:
- Scraping the Netflix Top 10 TV shows and movies lists
- Resolving titles to TMDb ids (single and batch)
- Cache and health status
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.routers import scraper
from top10_backend.integrations.flixpatrol.page_client import PageFetchError
from top10_backend.settings import get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    settings = get_settings()
    logger.info("Starting up Top 10 Scraper API (target=%s)...", settings.target_url)
    yield
    logger.info("Shutting down Top 10 Scraper API...")


app = FastAPI(
    title="Top 10 Scraper API",
    description="Netflix Top 10 lists scraped from a ranking site, optionally enriched with TMDb ids",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
# Set CORS_ALLOW_ORIGINS env var with comma-separated origins for production
# If no origins configured, allows all origins but disables credentials
cors_origins = list(get_settings().cors_allow_origins)
allow_credentials = len(cors_origins) > 0

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins if cors_origins else ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.include_router(scraper.router, prefix="/api")


@app.exception_handler(PageFetchError)
async def page_fetch_error_handler(request: Request, exc: PageFetchError) -> JSONResponse:
    logger.error("Scraping failed: %s", exc)
    if exc.status_code is None:
        return JSONResponse(
            status_code=503,
            content={"error": "Service Unavailable", "message": "Unable to reach target website"},
        )
    return JSONResponse(
        status_code=502,
        content={"error": "Bad Gateway", "message": f"Target website answered HTTP {exc.status_code}"},
    )


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    logger.error("Validation error: %s", exc)
    return JSONResponse(status_code=400, content={"error": "Validation Error", "message": str(exc)})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error: %s", exc)
    message = "Something went wrong" if get_settings().is_production else str(exc)
    return JSONResponse(status_code=500, content={"error": "Internal Server Error", "message": message})


@app.get("/")
def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "top10-scraper"}


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}
