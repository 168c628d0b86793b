"""FastAPI application entrypoint for the breath guide assistant."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .config import settings
from .dependencies import shutdown
from .routers import chat, qa, sessions

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    missing = settings.missing_assistant_fields()
    if missing:
        logger.warning("Assistant answers disabled until configured: %s", ", ".join(missing))
    yield
    await shutdown()


def create_app() -> FastAPI:
    """Instantiate and configure the FastAPI application."""
    application = FastAPI(
        title="Breath Guide Assistant",
        description="Answers breathwork and meditation questions through an OpenAI assistant.",
        version="0.1.0",
        lifespan=lifespan,
    )
    application.include_router(qa.router)
    application.include_router(chat.router)
    application.include_router(sessions.router)

    @application.get("/")
    async def root() -> dict[str, str]:
        """Lightweight health endpoint for service discovery."""
        return {"service": "breath-guide", "status": "ok"}

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
