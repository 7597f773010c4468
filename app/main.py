from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import health
from app.api.v1 import amenities, assets, parks
from app.core.config import settings
from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging
from app.core.middleware import LatencyMonitorMiddleware, RequestIdMiddleware

# Setup logging
logger = setup_logging()


# =============================================================================
# OpenAPI Tags Metadata
# =============================================================================
tags_metadata = [
    {
        "name": "parks",
        "description": "**Parks** - Park catalog, park detail with its images, documents, amenities, activities, assets and tree health, and the dashboard aggregates. / *Catalogo y detalle de parques.*",
    },
    {
        "name": "assets",
        "description": "**Assets** - Inventory of park assets with maintenance dates. / *Inventario de activos de los parques.*",
    },
    {
        "name": "amenities",
        "description": "**Amenities** - Amenity catalog. / *Catalogo de amenidades.*",
    },
    {
        "name": "health",
        "description": "**Health** - Liveness, readiness and schema probes. / *Sondas de salud del servicio.*",
    },
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    logger.info(f"Starting {settings.PROJECT_NAME} v{settings.VERSION}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")
    logger.info(f"Database schema: {settings.DB_SCHEMA}")

    yield

    # Shutdown
    logger.info("Shutting down...")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    description="""
## Parques Admin API

Read API behind the municipal parks dashboard and public park catalog.

Collections that the connected database cannot provide come back empty and
are listed in `dataWarnings` instead of failing the whole page.
    """,
    openapi_tags=tags_metadata,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url=f"{settings.API_V1_PREFIX}/openapi.json",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["*"],
)

# Latency Monitoring (SLO Check)
app.add_middleware(LatencyMonitorMiddleware)

# Request ID Tracing
app.add_middleware(RequestIdMiddleware)

# Register global exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(
    parks.router, prefix=f"{settings.API_V1_PREFIX}/parks", tags=["parks"]
)

app.include_router(
    assets.router, prefix=f"{settings.API_V1_PREFIX}/assets", tags=["assets"]
)

app.include_router(
    amenities.router, prefix=f"{settings.API_V1_PREFIX}/amenities", tags=["amenities"]
)

app.include_router(
    health.router, prefix=f"{settings.API_V1_PREFIX}/health", tags=["health"]
)


# Health check endpoint
@app.get(
    "/health",
    summary="Health check",
    description="""
    Returns service health metadata for monitoring and uptime checks.

    ---
    Devuelve metadatos de salud del servicio para monitoreo y checks de uptime.
    """,
)
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "version": settings.VERSION,
        "environment": settings.ENVIRONMENT,
    }


# Root endpoint
@app.get("/", summary="API root")
async def root():
    """Root endpoint with API info"""
    return {
        "name": settings.PROJECT_NAME,
        "version": settings.VERSION,
        "docs": "/docs",
        "health": "/health",
    }
