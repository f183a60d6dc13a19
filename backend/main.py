"""
GradeLens — Grade Distribution Analytics
FastAPI backend entry point.
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routes.analyze import router as analyze_router
from routes.filter import router as filter_router

# Load environment
load_dotenv()

APP_NAME = os.getenv("APP_NAME", "GradeLens")
MIN_ENROLLMENT = int(os.getenv("MIN_ENROLLMENT", "3"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# Comma-separated allowed origins, e.g. http://localhost:5173,https://app.example.com
raw_origins = os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000")
ALLOWED_ORIGINS = [o.strip() for o in raw_origins.split(",") if o.strip()]

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="GradeLens API",
    description=(
        "Historical grade distributions for courses and instructors — "
        "enrollment-weighted aggregates, difficulty rankings and GPA correlations."
    ),
    version="1.0.0",
)

# CORS — allow the frontend dev server
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register route modules
app.include_router(filter_router, prefix="/api/filter", tags=["Filtering"])
app.include_router(analyze_router, prefix="/api/analyze", tags=["Analytics"])


@app.get("/api/health")
async def health_check():
    return {
        "status": "ok",
        "app_name": APP_NAME,
        "min_enrollment": MIN_ENROLLMENT,
    }


@app.get("/api/config")
async def get_config():
    """Return server configuration to the frontend."""
    return {
        "app_name": APP_NAME,
        "min_enrollment": MIN_ENROLLMENT,
    }
