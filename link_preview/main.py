from contextlib import asynccontextmanager

from fastapi import FastAPI

from link_preview.api import api_router
from link_preview.config import settings
from link_preview.logging_config import setup_logging
from link_preview.services.fetcher import build_client


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    setup_logging()
    app.state.http_client = build_client()
    yield
    # Shutdown
    await app.state.http_client.aclose()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.include_router(api_router)


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok", "app": settings.app_name}
