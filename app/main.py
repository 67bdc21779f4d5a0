"""FastAPI application setup for MagLaba."""

from fastapi import FastAPI

from .api import router as api_router
from .config import settings
from utils.logging_utils import setup_logging

setup_logging(level=settings.log_level)

app = FastAPI(title="MagLaba", description="Weather-based laundry recommendations")


@app.get("/health")
def health():
    """Liveness probe."""
    return {"status": "ok"}


# API routes
app.include_router(api_router, prefix="/v1")
