"""hookrelay - FastAPI application.

Receives inbound webhooks at ``{route_prefix}/{webhook_name}`` and
dispatches them to the handlers registered on the webhook manager.
"""

from typing import Optional

from fastapi import FastAPI

from . import __version__
from .core.logging_config import setup_logging
from .core.settings import default_settings
from .webhooks import router as webhooks
from .webhooks.manager import WebhookManager, get_manager


def create_app(manager: Optional[WebhookManager] = None) -> FastAPI:
    """Build the application.

    Args:
        manager: Webhook manager to serve. The global manager if omitted.

    Returns:
        The configured FastAPI app.
    """
    settings = manager.settings if manager else default_settings()

    app = FastAPI(
        title="hookrelay",
        description="Inbound webhook registration, signature verification and dispatch.",
        version=__version__,
    )

    app.include_router(webhooks.router, prefix=settings.route_prefix)

    if manager is not None:
        app.dependency_overrides[get_manager] = lambda: manager

    @app.on_event("startup")
    async def startup_event():
        """Initialize services on startup."""
        setup_logging()

    @app.get("/")
    def root() -> dict[str, str]:
        """Root endpoint returning service information.

        Returns:
            dict: Status and version.
        """
        return {
            "status": "ok",
            "message": "hookrelay webhook receiver",
            "version": __version__,
            "docs": "/docs",
        }

    @app.get("/health")
    def health() -> dict[str, str]:
        """Health check endpoint for monitoring and load balancers.

        Returns:
            dict: Health status indicator.
        """
        return {"status": "healthy"}

    return app


app = create_app()
