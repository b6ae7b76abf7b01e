"""NetSentinel application entrypoint."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from netsentinel.config import load_config, settings
from netsentinel.monitor.service import MonitorService

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application startup/shutdown lifecycle."""
    cfg = load_config()
    monitor = MonitorService.from_settings(cfg)
    app.state.monitor = monitor
    logger.info("Simulating subnet %s.0/24 (cap=%d devices)", cfg.subnet, cfg.device_cap)
    if not cfg.gemini_api_key:
        logger.warning("NETSENTINEL_GEMINI_API_KEY not set; analyses will return a fallback")

    yield

    await app.state.monitor.shutdown()
    logger.info("Monitoring shut down")


app = FastAPI(
    title="NetSentinel",
    description="Simulated local network monitoring with AI security analysis",
    version="0.1.0",
    lifespan=lifespan,
)


# Register routers
from netsentinel.api.routes import router as api_router  # noqa: E402

app.include_router(api_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


def main() -> None:
    import uvicorn

    logger.info("Starting NetSentinel on %s:%d", settings.host, settings.port)
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
