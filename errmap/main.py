"""FastAPI application entrypoint for errmap."""

from fastapi import FastAPI

from errmap.core.config import get_settings
from errmap.core.errors import register_error_handlers
from errmap.core.logging import configure_logging

settings = get_settings()
configure_logging(settings.log_level)

app = FastAPI(title=settings.app_name)
register_error_handlers(app)


@app.get("/health")
def health() -> dict[str, str]:
    """Health check stub endpoint for service readiness."""
    return {"status": "ok"}
