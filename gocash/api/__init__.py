"""
GoCash API Application Factory
"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .rbac import router as auth_router
from .users import router as users_router
from .collections import router as collections_router
from .loans import router as loans_router
from .dashboard import router as dashboard_router
from .wallet import router as wallet_router
from .support import router as support_router
from .. import __version__
from ..config import get_config
from ..logging_config import setup_logging


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format, log_file=config.log_file)

    app = FastAPI(
        title="GoCash Collections API",
        description="Microloan origination and field collection service",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(auth_router, prefix="/auth", tags=["Auth"])
    app.include_router(users_router, prefix="/users", tags=["Users"])
    app.include_router(collections_router, prefix="/collector", tags=["Collector"])
    app.include_router(loans_router, prefix="/loans", tags=["Loans"])
    app.include_router(dashboard_router, prefix="/dashboard", tags=["Dashboard"])
    app.include_router(wallet_router, prefix="/wallet", tags=["Wallet"])
    app.include_router(support_router, prefix="/support", tags=["Support"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "gocash_api",
            "version": __version__
        }

    # Root endpoint
    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "GoCash Collections API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "auth": "/auth",
                "users": "/users",
                "collector": "/collector",
                "loans": "/loans",
                "dashboard": "/dashboard",
                "wallet": "/wallet",
                "support": "/support",
            }
        }

    return app


app = create_app()


# Run server function
def run_server(host: str = "0.0.0.0", port: int = 8090, debug: bool = False):
    """Run the FastAPI server"""
    uvicorn.run(
        "gocash.api:app",
        host=host,
        port=port,
        reload=debug,
        log_level="info"
    )
