from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from app.config import get_settings
from app.database import engine, Base
from app.api import products, transfer, health
from app.models import product, inventory_history  # noqa: F401 - register tables

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")

    # Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    yield

    # Shutdown
    logger.info("Shutting down application...")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    description="""
    Backend for the inventory admin table:

    - **Product Management**: Create, list, update and delete products
    - **Stock History**: Every stock change is recorded in an append-only audit trail
    - **Bulk Import**: CSV import that adds new products and reports duplicates
    - **Export**: Download the whole inventory as CSV
    - **Caching**: Redis-based caching for product details

    ## Features

    ### Stock History
    Updating a product's stock appends a history record with the old and new
    quantities. Recording history is best-effort: if it fails, the update
    itself still succeeds.

    ### Import Reconciliation
    Rows are processed in file order. A row whose name matches an existing
    product (including one added earlier in the same file) is skipped, never
    overwritten. Rows with missing fields are reported without stopping the import.
    """,
    version=settings.APP_VERSION,
    contact={
        "name": "API Support",
        "email": "support@example.com"
    },
    license_info={
        "name": "MIT",
        "url": "https://opensource.org/licenses/MIT"
    },
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(health.router, prefix="/api/v1")
app.include_router(products.router, prefix="/api/v1")
app.include_router(transfer.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/api/v1/health"
    }
