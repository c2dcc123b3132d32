"""Main application entry point."""
import logging
from contextlib import asynccontextmanager

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from middleman.api import dependencies, monitoring, routes
from middleman.config import settings
from middleman.infrastructure.clients import HttpLedgerClient

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Configure standard logging
logging.basicConfig(
    format="%(message)s",
    level=getattr(logging, settings.log_level.upper()),
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler: prepare storage and bootstrap the counter."""
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(
        f"Storage backend: {settings.storage_backend}, "
        f"ledger backend: {settings.ledger_backend}"
    )

    if settings.storage_backend == "postgres":
        from middleman.infrastructure.database import init_db

        logger.info("Initializing PostgreSQL database")
        try:
            await init_db()
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Failed to initialize database: {e}")
            raise

    await dependencies.get_offer_service().bootstrap()

    yield

    logger.info("Shutting down")
    ledger = dependencies.get_ledger()
    if isinstance(ledger, HttpLedgerClient):
        await ledger.close()

    if settings.storage_backend == "postgres":
        from middleman.infrastructure.database import close_db

        logger.info("Closing database connections")
        await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Escrow offer registry: holders escrow an asset, spenders pay to take it",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(routes.router)
app.include_router(routes.admin_router)
app.include_router(monitoring.router)


@app.get("/")
async def root() -> dict:
    """Root endpoint."""
    return {
        "service": settings.app_name,
        "version": settings.app_version,
        "status": "running",
        "storage": settings.storage_backend,
    }


def run() -> None:
    """Console entry point."""
    uvicorn.run(
        "middleman.main:app",
        host=settings.app_host,
        port=settings.app_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
