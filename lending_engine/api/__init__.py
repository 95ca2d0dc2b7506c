"""
Lending Engine API Application Factory
"""

import uvicorn
from fastapi import FastAPI

from .quotes import router as quotes_router
from .schedules import router as schedules_router
from .payments import router as payments_router
from .. import __version__
from ..config import get_config
from ..logging_config import setup_logging


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    config = get_config()
    setup_logging(level=config.log_level, log_format=config.log_format)

    app = FastAPI(
        title="Lending Engine API",
        description="Interest, quote, repayment schedule and payment allocation calculations",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Include routers
    app.include_router(quotes_router, prefix="/quotes", tags=["Quotes"])
    app.include_router(schedules_router, prefix="/schedules", tags=["Schedules"])
    app.include_router(payments_router, prefix="/payments", tags=["Payments"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "lending_engine_api",
            "version": __version__
        }

    return app


def run_server(host: str = None, port: int = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    uvicorn.run(
        "lending_engine.api:create_app",
        factory=True,
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level=config.log_level.lower()
    )
