from fastapi import FastAPI

from oncall_reconciler.api.routes import api_router
from oncall_reconciler.core.config import get_settings
from oncall_reconciler.core.logging import configure_logging


def create_application() -> FastAPI:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        description="API for reconciling on-call rosters against assignees' calendars.",
    )
    app.include_router(api_router, prefix="/api")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Simple health endpoint for infrastructure monitoring."""
        return {"status": "ok"}

    return app


app = create_application()
