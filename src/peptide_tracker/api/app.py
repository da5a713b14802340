"""FastAPI application factory."""

from fastapi import FastAPI

from peptide_tracker.api.routes import router
from peptide_tracker.app_logging import configure_logging
from peptide_tracker.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)

    app = FastAPI(title="Peptide Tracker")
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    app.include_router(router)
    return app
