"""
FastAPI application entry point.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from app.config import settings
from app.api.rate_limit import limiter
from app.api.templating import STATIC_DIR
from app.api.v1.models.responses import HealthResponse
from app.api.v1.routers import accounts, admin, head, labels, listings, reports, trees
from app.infrastructure.document_store_client import DocumentStoreClient
from app.infrastructure.identity_client import IdentityClient
from app.infrastructure.mail_client import MailClient
from app.infrastructure.media_store_client import MediaStoreClient
from app.infrastructure.plant_identification_client import PlantIdentificationClient
from app.infrastructure.text_generation_client import TextGenerationClient
from app.middleware.error_handler import ErrorHandlerMiddleware

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

    Creates the remote service clients on startup and closes their
    connection pools on shutdown.
    """
    # Startup
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Log level: {settings.log_level}")
    logger.info(f"Document store: {settings.document_store_url}")
    logger.info(f"Workflow config: max_images_per_tree={settings.max_images_per_tree}, "
                f"public_id_max_attempts={settings.public_id_max_attempts}")
    logger.info(f"Rate limit: {settings.rate_limit_requests} requests/minute")

    app.state.document_store = DocumentStoreClient()
    app.state.media_store = MediaStoreClient()
    app.state.text_generator = TextGenerationClient()
    app.state.plant_identifier = PlantIdentificationClient()
    app.state.identity = IdentityClient()
    app.state.mail = MailClient()

    yield

    # Shutdown
    logger.info("Shutting down application...")
    for client in (
        app.state.document_store,
        app.state.media_store,
        app.state.text_generator,
        app.state.plant_identifier,
        app.state.identity,
    ):
        await client.close()
    logger.info("Shutdown complete")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="""
    Tree tagging service for volunteer-run tree surveys

    Volunteers photograph and describe trees; each tree gets a record, a
    printable QR label and a public page.

    ## Features

    - **Tagging workflow**: name, classification, location and photos, step by step
    - **Photo identification**: species suggestions and an AI-written description
    - **Drafts and publishing**: unpublished records stay private to their volunteer
    - **QR labels**: PNG and printable PDF labels pointing at the public page
    - **Volunteer moderation**: sign-up approval by heads, roles and permissions
    - **Rate Limiting**: Protects the upload endpoints from abuse
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
app.include_router(listings.router)
app.include_router(trees.router)
app.include_router(labels.router)
app.include_router(accounts.router)
app.include_router(head.router)
app.include_router(admin.router)
app.include_router(reports.router)

app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")


@app.get("/health", tags=["health"], response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": settings.app_version,
    }
