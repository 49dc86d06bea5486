"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from native_trees.config import settings
from native_trees.api.rate_limit import limiter
from native_trees.middleware.error_handler import ErrorHandlerMiddleware
from native_trees.api.v1.routers import tree_species

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

    Handles startup and shutdown events using the modern FastAPI pattern.
    """
    from native_trees.domain.rules import get_taxon_rules
    from native_trees.infrastructure.database import get_database
    from native_trees.infrastructure.gbif_client import get_gbif_client
    from native_trees.infrastructure.geocoding_client import get_geocoding_client

    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Pipeline config: selection_limit={settings.selection_limit}, "
                f"batch_size={settings.enrichment_batch_size}, "
                f"batch_delay_ms={settings.enrichment_batch_delay_ms}, "
                f"native_status_mode={settings.native_status_mode}")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    get_taxon_rules()
    database = get_database()
    await database.initialize()

    yield

    # Shutdown
    logger.info("Shutting down application...")
    await get_gbif_client().close()
    await get_geocoding_client().close()
    await database.dispose()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Native Tree Finder API

    This API resolves which tree species observed around a US city are likely
    native there, using GBIF occurrence data.

    ## Features

    - **Tree Classification**: Keyword, family and genus rules kept in a
      versioned rule file
    - **Native-Status Voting**: Per-taxon majority vote over establishment-means
      labels, with an invasive blocklist override
    - **Batched Enrichment**: Bounded-concurrency species detail lookups with
      pacing between batches
    - **Location Cache**: Repeated searches are served from the species store
      without outbound calls
    - **Rate Limiting**: Protects the API from abuse

    ## Search Pipeline

    1. Validate the city name and check the location cache
    2. Geocode the city and fetch plant occurrences in the surrounding area
    3. Aggregate occurrences per taxon, discarding non-trees
    4. Keep taxa that are likely native, ranked by occurrence count
    5. Enrich the top taxa and re-check them as trees
    6. Reuse previously resolved species and store the results
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
app.include_router(tree_species.router, prefix="/api/v1")


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
