import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from tortoise import Tortoise

from .core import config, logging_config  # noqa: F401  (configures the "gateway" logger)
from .core.database import Databases, build_tortoise_config
from .core.docs import register_docs
from .core.error_handlers import register_error_handlers
from .core.security import register_rate_limit, register_security_headers
from .features.auth.router import router as auth_router
from .features.catalog.router import router as catalog_router
from .features.inventory.router import router as inventory_router
from .features.invoices.router import router as invoices_router
from .features.products.router import custom_query_router, router as products_router
from .features.sync.history import SyncHistory
from .features.sync.router import router as sync_router
from .features.warranty.router import router as warranty_router

logger = logging.getLogger("gateway.main")  # This logger will inherit from 'gateway'

API_PREFIX = "/api"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Opens one connection pool per external database and closes them on shutdown.
    """
    logger.info(f"Starting gateway ({config.ENVIRONMENT})...")
    await Tortoise.init(config=build_tortoise_config())
    app.state.databases = Databases.from_connections()
    app.state.sync_history = SyncHistory(config.SYNC_HISTORY_SIZE)
    logger.info("Database connections have been initialized.")

    yield

    await Tortoise.close_connections()
    logger.info("Database connections have been closed.")


app = FastAPI(
    title="Warehouse Gateway API",
    description="Reporting endpoints over the sales data warehouse and product sync with the web store.",
    version="0.1.0",
    lifespan=lifespan,
    docs_url=None,
    redoc_url=None,
    openapi_url=None,
)

limiter = register_rate_limit(app)
register_security_headers(app, docs_path=f"{API_PREFIX}/docs")
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials="*" not in config.CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-API-Key", "X-Request-ID"],
)
register_error_handlers(app)
register_docs(app, prefix=API_PREFIX)


@app.get("/")
@limiter.exempt
async def read_root(request: Request):
    """
    Root endpoint for the API.
    """
    client_host = request.client.host if request.client else "unknown client"
    logger.info(f"Root endpoint '/' accessed by {client_host}")
    return {"success": True, "message": "Warehouse Gateway API", "docs": f"{API_PREFIX}/docs"}


# Include your routers
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(inventory_router, prefix=API_PREFIX)
app.include_router(invoices_router, prefix=API_PREFIX)
app.include_router(warranty_router, prefix=API_PREFIX)
app.include_router(catalog_router, prefix=API_PREFIX)
app.include_router(products_router, prefix=API_PREFIX)
app.include_router(custom_query_router, prefix=API_PREFIX)
app.include_router(sync_router, prefix=API_PREFIX)
