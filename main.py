"""
Conference Slot Signup System - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from conference_app.core.config import settings
from conference_app.core.db import engine, Base
from conference_app.core.exceptions import ConferenceError
from conference_app.api import routes_admin, routes_cron, routes_public, routes_signup
from conference_app.utils.responses import error_response

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan management"""
    # Create database tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info("Application shutdown")

# Create FastAPI application
app = FastAPI(
    title="Conference Slot Signup System",
    description="Parent-teacher conference signups with capacity enforcement",
    version="1.0.0",
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(ConferenceError)
async def conference_error_handler(request: Request, exc: ConferenceError):
    """Map domain errors to the standard error envelope"""
    return error_response(
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
        status_code=exc.status_code
    )

# Include routers
app.include_router(routes_public.router, tags=["public"])
app.include_router(routes_signup.router, tags=["signup"])
app.include_router(routes_admin.router, prefix="/admin", tags=["admin"])
app.include_router(routes_cron.router, prefix="/api/cron", tags=["cron"])

# Note: Run this ASGI app directly with Uvicorn or Hypercorn. For Gunicorn,
# use `uvicorn.workers.UvicornWorker` instead of wrapping the app.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=8000,
        reload=True
    )
