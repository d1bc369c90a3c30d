"""EstateDesk - FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from estatedesk.core.config import get_settings
from estatedesk.core.env_validation import validate_environment
from estatedesk.core.errors import DomainError
from estatedesk.routers import (
    properties_router,
    units_router,
    maintenance_router,
    billing_router,
)

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Hard-fails (exit 1) if required configuration is missing
    validate_environment()
    yield


app = FastAPI(
    title=settings.app_name,
    description="Property management backend: unit status lifecycle, status history and the units board.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

logger.info(f"CORS configured with origins: {settings.cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    logger.debug(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


for router in (properties_router, units_router, maintenance_router, billing_router):
    app.include_router(router, prefix=settings.api_v1_prefix)


@app.get("/health")
async def health_check():
    """Liveness probe."""
    return {"status": "healthy", "service": settings.app_name}


@app.get("/")
async def root():
    """Service banner with the board entry point."""
    return {
        "service": settings.app_name,
        "version": app.version,
        "board": f"{settings.api_v1_prefix}/units/board",
        "docs": "/docs" if settings.debug else "Disabled in production",
    }
