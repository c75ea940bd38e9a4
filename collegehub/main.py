"""
CollegeHub Backend - FastAPI Application

Main application entry point with middleware, routers, and OpenAPI
documentation.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from collegehub import __version__
from collegehub.config import settings
from collegehub.database import close_db, init_db
from collegehub.middleware.rate_limit import RateLimitMiddleware
from collegehub.routers import admissions, auth, colleges, reviews, users

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Open the MongoDB connection (and ensure indexes) for the app's lifetime."""
    await init_db()
    logger.info("CollegeHub API started")

    yield

    await close_db()
    logger.info("CollegeHub API stopped")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="CollegeHub API",
    description="""
    CollegeHub - College Discovery and Admissions API

    ## Features
    - College search, filtering and statistics
    - Student reviews with quality ranking and automatic rating summaries
    - Admission applications with progress tracking
    - Admin moderation and analytics

    ## Authentication
    Authenticated endpoints require `Authorization: Bearer <token>` using the
    token returned by `/api/v1/auth/login` or `/api/v1/auth/register`.
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


# =============================================================================
# Middleware
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RateLimitMiddleware)


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled errors and return a generic message without internals."""
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Something went wrong. Please try again later."},
    )


# =============================================================================
# Routers
# =============================================================================

app.include_router(auth.router, prefix=f"{settings.api_v1_str}/auth", tags=["Authentication"])
app.include_router(users.router, prefix=f"{settings.api_v1_str}/users", tags=["Users"])
app.include_router(colleges.router, prefix=f"{settings.api_v1_str}/colleges", tags=["Colleges"])
app.include_router(reviews.router, prefix=f"{settings.api_v1_str}/reviews", tags=["Reviews"])
app.include_router(
    admissions.router, prefix=f"{settings.api_v1_str}/admissions", tags=["Admissions"]
)


# =============================================================================
# Health Check
# =============================================================================


@app.get("/health", tags=["Health"])
async def health_check():
    """Health check endpoint for load balancers and monitoring."""
    return {"status": "healthy", "version": __version__}


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "CollegeHub API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
