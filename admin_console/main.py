import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import FastAPI

from admin_console.api.v1.categories import router as categories_router
from admin_console.api.v1.dashboard import router as dashboard_router
from admin_console.core.config import settings
from admin_console.wiring.dependencies import Container, build_container


class ContextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        extras = []
        for key in ("source", "event", "collection", "record_id", "status", "strategy", "count", "category_id", "reason", "error"):
            value = getattr(record, key, None)
            if value not in (None, ""):
                extras.append(f"{key}={value}")
        base = super().format(record)
        if extras:
            return f"{base} | " + " ".join(extras)
        return base


def configure_logging(level: str = settings.LOG_LEVEL) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(ContextFormatter("%(levelname)s:%(name)s:%(message)s"))

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()
    root.addHandler(handler)


def create_app(container_factory: Callable[[], Container] = build_container) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container = container_factory()
        app.state.container = container
        await container.start()
        try:
            yield
        finally:
            await container.shutdown()

    app = FastAPI(title=f"{settings.BUSINESS_NAME} Admin Console", version="1.0.0", lifespan=lifespan)
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["dashboard"])
    app.include_router(categories_router, prefix="/api/v1/categories", tags=["categories"])

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


configure_logging()
app = create_app()
