"""
SitePulse SEO Dashboard API
Main FastAPI application
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from starlette.middleware.gzip import GZipMiddleware
from contextlib import asynccontextmanager

from sitepulse.config import get_settings
from sitepulse.utils.logger import log
from sitepulse import __version__

# Import routers
from sitepulse.api import health, sites, search_console

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    # Startup
    log.info(f"Starting {settings.app_name} v{__version__}")
    log.info(f"Environment: {settings.environment}")

    # Bootstrap credential file from env vars (for Render / PaaS)
    from sitepulse.utils.credentials import bootstrap_credentials
    bootstrap_credentials(settings)

    # Initialize database
    if settings.metrics_store_backend == "sql":
        try:
            from sitepulse.models.base import init_db
            init_db()
            log.info("Database initialized")
        except Exception as e:
            log.error(f"Database initialization error: {str(e)}")

    # Select the storage backend once, at startup
    from sitepulse.stores import get_store
    get_store()

    yield

    # Shutdown
    log.info("Shutting down application")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=__version__,
    description="""
    SEO site dashboard backend

    - Site management
    - Google Search Console daily metrics with incremental sync
    - 90-day rolling retention of stored metrics
    - Live query/page/country/device breakdowns
    """,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Gzip compression
app.add_middleware(GZipMiddleware, minimum_size=500)

# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(sites.router)
app.include_router(search_console.router)


@app.get("/robots.txt", response_class=PlainTextResponse)
async def robots_txt():
    """Block all crawlers"""
    return "User-agent: *\nDisallow: /\n"


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sitepulse.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
    )
