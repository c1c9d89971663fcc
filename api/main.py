"""
AaaS Marketplace API - Main Application.

FastAPI application with CORS enabled for frontend communication.
Clients (Supabase, chain RPC, Moltbook) are built once per process in the
lifespan handler and closed on shutdown.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import __version__
from config.settings import Settings, cors_allowed_origins_from_env
from repositories.client import create_supabase_client
from services.chain_client import ChainClient
from services.moltbook_client import MoltbookClient

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Settings are read from the environment at startup unless passed in.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resolved = settings or Settings.from_env()
        app.state.settings = resolved
        app.state.supabase = create_supabase_client(resolved)
        app.state.chain_client = ChainClient(resolved.chain_rpc_url)
        app.state.moltbook_client = MoltbookClient(
            resolved.moltbook_api_url,
            resolved.moltbook_api_key,
        )
        logger.info("AaaS Marketplace API started", extra={"version": __version__})
        try:
            yield
        finally:
            app.state.chain_client.close()
            app.state.moltbook_client.close()

    app = FastAPI(
        title="AaaS Marketplace API",
        description="REST API for selling digital products paid in USDC on Arc testnet",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    if settings is not None:
        origins = list(settings.cors_allowed_origins)
    else:
        origins = list(cors_allowed_origins_from_env())
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", tags=["Health"])
    def health_check():
        """
        Health check endpoint.

        Returns the API status and version.
        """
        return {
            "status": "healthy",
            "version": __version__,
            "service": "aaas-marketplace-api"
        }

    @app.get("/", tags=["Root"])
    def root():
        """
        Root endpoint with API information.
        """
        return {
            "message": "AaaS Marketplace API",
            "version": __version__,
            "docs": "/docs",
            "health": "/health"
        }

    # Import and include routers
    from api.routers import cron, orders, products, skills, users

    app.include_router(products.router, prefix="/api/v1", tags=["Products"])
    app.include_router(skills.router, prefix="/api/v1", tags=["Skills"])
    app.include_router(orders.router, prefix="/api/v1", tags=["Orders"])
    app.include_router(cron.router, prefix="/api/v1", tags=["Cron"])
    app.include_router(users.router, prefix="/api/v1", tags=["Users"])

    return app


app = create_app()
