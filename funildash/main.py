"""FunilDash — FastAPI Application Entry Point.

Marketing-funnel dashboard API: funnels, campaigns, ad sets, creatives,
metric snapshots and the composite dashboard.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from funildash.config import settings
from funildash.database import init_db, test_connection
from funildash.api.funnel_routes import router as funnel_router
from funildash.api.campaign_routes import router as campaign_router
from funildash.api.ad_set_routes import router as ad_set_router
from funildash.api.creative_routes import router as creative_router
from funildash.api.metric_routes import router as metric_router
from funildash.api.dashboard_routes import router as dashboard_router
from funildash.core.errors import DashboardError
from funildash.core.logging import get_logger

logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    logger.info("🚀 FunilDash starting up...")
    if test_connection():
        try:
            init_db()
        except Exception as e:
            logger.error(f"❌ Table creation failed: {e}")
    else:
        logger.error("❌ Database NOT connected — endpoints will fail")
    yield
    logger.info("FunilDash shut down")


app = FastAPI(
    title="FunilDash",
    description="Marketing funnel dashboard — CRUD over funnels, campaigns, ad sets and creatives, plus aggregated performance views.",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    logger.info(
        f"{request.method} {request.url.path} → {response.status_code}",
        extra={
            "endpoint": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
    return response


# ── Error Handlers ──


@app.exception_handler(DashboardError)
async def dashboard_error_handler(request: Request, exc: DashboardError):
    """Render raised taxonomy errors as ``{"error": message}``."""
    if exc.status_code >= 500:
        logger.error(
            f"{type(exc).__name__} on {request.url.path}: {exc.message}",
            extra={"endpoint": request.url.path, "status_code": exc.status_code},
        )
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies and query parameters are client errors (400)."""
    fields = sorted(
        {".".join(str(p) for p in err.get("loc", ())[1:]) or "body" for err in exc.errors()}
    )
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid request: {', '.join(fields)}"},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    """Anything else is a 500 without internal detail."""
    logger.error(
        f"Unhandled error on {request.url.path}: {exc}",
        exc_info=exc,
        extra={"endpoint": request.url.path, "status_code": 500},
    )
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Routers
app.include_router(funnel_router)
app.include_router(campaign_router)
app.include_router(ad_set_router)
app.include_router(creative_router)
app.include_router(metric_router)
app.include_router(dashboard_router)


@app.get("/health", tags=["System"])
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "funildash",
        "version": "1.0.0",
    }
