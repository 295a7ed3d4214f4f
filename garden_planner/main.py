"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from garden_planner.config import settings
from garden_planner.middleware.error_handler import ErrorHandlerMiddleware
from garden_planner.api.rate_limit import limiter
from garden_planner.api.v1.routers import layouts, vegetables
from garden_planner.infrastructure.catalog_client import get_catalog, get_catalog_client

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Loads the vegetable catalog on startup and closes the catalog client on
    shutdown.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Refinement: enabled={settings.refinement_enabled}, "
                f"population={settings.refinement_population_size}, "
                f"generations={settings.refinement_generations}")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    catalog = await get_catalog()
    logger.info(f"Serving {len(catalog.vegetables)} vegetables")

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await get_catalog_client().close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Garden Layout Planner API

    This API places a selection of vegetables in a rectangular garden, favouring
    good companion-planting neighbors and respecting spacing requirements.

    ## Features

    - **Layout Optimization**: Greedy row packing refined by an evolutionary search
    - **Companion Planting**: Distance-aware scoring of beneficial and antagonistic
      neighbors, reported per segment
    - **Quality Warnings**: Low utilisation, bad companions, spacing violations and
      vegetables that did not fit
    - **Vegetable Catalog**: Bundled, local or remote catalog with retries
    - **Rate Limiting**: Protects the API from abuse

    ## Optimization Algorithm

    1. Splits the garden area between vegetables by priority
    2. Fills full-width rows, highest priority and widest rows first
    3. Packs leftovers into existing rows tall enough to hold them
    4. Evolves the layout with tournament selection, row crossover and mutation
    5. Scores companions (40%), utilisation (30%), diversity (20%) and spacing (10%)
    """,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# Add rate limiter to app state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Add CORS middleware with configurable origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add global error handling middleware
app.add_middleware(ErrorHandlerMiddleware)

# Include routers
app.include_router(vegetables.router, prefix="/api/v1")
app.include_router(layouts.router, prefix="/api/v1")


@app.get("/", tags=["health"])
async def root():
    """
    Root endpoint for health check.

    Returns:
        Status message
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }


@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
    }
