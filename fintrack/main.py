import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from .api import api_router
from .config import get_settings
from .db import dispose_engine, init_db
from .services.whatsapp import get_whatsapp_sender
from .telegram.bot import init_bot, shutdown_bot

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    await init_bot()
    if not get_whatsapp_sender().is_configured:
        logger.warning("FONNTE_API_TOKEN not configured; OTP codes will only be logged.")
    try:
        yield
    finally:
        await shutdown_bot()
        await get_whatsapp_sender().aclose()
        await dispose_engine()


_docs_enabled = settings.environment.lower() != "production"
app = FastAPI(
    title=settings.app_name,
    lifespan=lifespan,
    docs_url="/docs" if _docs_enabled else None,
    redoc_url="/redoc" if _docs_enabled else None,
)
app.include_router(api_router, prefix="/api")


@app.get("/health", tags=["system"])
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


if _docs_enabled:
    @app.get("/docs/rapidoc", include_in_schema=False)
    async def rapidoc() -> HTMLResponse:
        html = """<!doctype html><html lang=\"id\"><head><meta charset=\"utf-8\"/><title>{title} API Docs</title><script type=\"module\" src=\"https://unpkg.com/rapidoc/dist/rapidoc-min.js\"></script></head><body><rapi-doc spec-url=\"/openapi.json\" theme=\"light\" render-style=\"read\" show-header=\"false\" primary-color=\"#16a34a\" layout=\"row\"></rapi-doc></body></html>""".format(title=settings.app_name)
        return HTMLResponse(content=html)
