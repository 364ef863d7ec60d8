from __future__ import annotations

import uvicorn
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from codespace_api.api import health, users
from codespace_api.api.utils import register_exception_handlers
from codespace_api.config import get_settings
from codespace_api.logging_config import configure_logging

configure_logging()

app = FastAPI(
    title="Codespace API",
    description="Service for provisioning Unix user accounts with SSH access on this host",
    version="0.1.0",
)


@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
    """Redirect root URL to Swagger UI docs."""
    return RedirectResponse(url="/docs")


app.include_router(users.router)
app.include_router(health.router)

register_exception_handlers(app)

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run("codespace_api.main:app", host=settings.host, port=settings.port, log_config=None)
