"""
Main Application Entry Point.

This module initializes the FastAPI application, configures middleware (CORS,
request tracing), registers the exception handlers and includes all API
routers. It serves as the root of the web server.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from serviceos import __version__
from serviceos.core.database import init_db
from serviceos.core.logging_config import get_logger, setup_logging
from serviceos.core.monitoring import initialize_logfire

from .api.v1 import (
    assistants,
    availability,
    blog,
    booking_settings,
    booking_types,
    bookings,
    clients,
    files,
    health,
    media,
    portal,
    sites,
)
from .core import constant
from .core.config import settings
from .exception_handlers import setup_exception_handlers
from .middleware import LogfireMiddleware

# Initialize logging
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events.

    Creates any missing tables on startup. A database that cannot be reached
    is logged and left for the first request to report.
    """
    # Startup
    try:
        logger.info("Starting up ServiceOS Server...")
        await init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}", exc_info=True)

    yield

    # Shutdown
    logger.info("Shutting down ServiceOS Server...")


app = FastAPI(
    title=constant.PROJECT_NAME,
    description="""
    ServiceOS Server API

    Backend for service businesses: bookings and availability, clients and their portal,
    blog and websites, the media library, and the AI assistants that work on them.
    """,
    version=__version__,
    openapi_url=f"{constant.API_V1_STR}/openapi.json",
    docs_url=f"{constant.API_V1_STR}/docs",
    redoc_url=f"{constant.API_V1_STR}/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=settings.cors.allow_methods,
    allow_headers=settings.cors.allow_headers,
)
app.add_middleware(LogfireMiddleware)

initialize_logfire(app)
setup_exception_handlers(app)


app.include_router(health.router, tags=["health"])
app.include_router(bookings.router, prefix=f"{constant.API_V1_STR}/bookings")
app.include_router(booking_types.router, prefix=f"{constant.API_V1_STR}/booking-types")
app.include_router(availability.router, prefix=f"{constant.API_V1_STR}/availability")
app.include_router(booking_settings.router, prefix=f"{constant.API_V1_STR}/booking-settings")
app.include_router(clients.router, prefix=f"{constant.API_V1_STR}/clients")
app.include_router(blog.router, prefix=f"{constant.API_V1_STR}/blog")
app.include_router(files.router, prefix=f"{constant.API_V1_STR}/files")
app.include_router(media.router, prefix=f"{constant.API_V1_STR}/media")
app.include_router(sites.router, prefix=f"{constant.API_V1_STR}/sites")
app.include_router(assistants.router, prefix=f"{constant.API_V1_STR}/assistants")
app.include_router(portal.router, prefix=f"{constant.API_V1_STR}/portal")
