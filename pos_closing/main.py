"""
Daily POS closing backend — FastAPI application entry-point.
"""
import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pos_closing.config import settings
from pos_closing.database import Base, engine
from pos_closing.errors import ConfigurationError, UpstreamPaginationError, ValidationError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(name)-30s  %(levelname)-5s  %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: ensure data dir + tables exist
    os.makedirs(settings.DATA_DIR, exist_ok=True)
    # Import models so Base.metadata knows about them
    import pos_closing.models  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready (%s)", settings.DATABASE_URL)
    yield
    logger.info("Shutting down")


app = FastAPI(
    title="POS Closing",
    description="Loyverse receipts → daily sales summary → cash settlement",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Error mapping ────────────────────────────────────────────────────────
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content=exc.to_dict())


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError):
    logger.error("Configuration error: %s", exc)
    return JSONResponse(status_code=500, content={"message": str(exc)})


@app.exception_handler(UpstreamPaginationError)
async def pagination_error_handler(request: Request, exc: UpstreamPaginationError):
    logger.error("Upstream pagination error: %s", exc)
    return JSONResponse(status_code=502, content={"message": str(exc)})


@app.exception_handler(httpx.HTTPError)
async def upstream_error_handler(request: Request, exc: httpx.HTTPError):
    logger.error("Loyverse request failed: %s", exc)
    return JSONResponse(status_code=502, content={"message": "Loyverse request failed"})


@app.get("/api/health")
async def health_check():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# ── Register API router ──────────────────────────────────────────────────
from pos_closing.routers.reports import router as reports_router  # noqa: E402

app.include_router(reports_router, prefix="/api", tags=["Daily Reports"])
