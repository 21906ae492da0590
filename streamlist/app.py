import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import APIRoute

from streamlist.core.config import Settings, get_settings
from streamlist.core.lifecycle import ShutdownRegistry, shutdown_registry
from streamlist.core.logging_config import configure_logging
from streamlist.domain.records import StreamItem
from streamlist.repositories.datastore import DataStore
from streamlist.routers import health as health_router
from streamlist.routers import stream_items as stream_items_router
from streamlist.services.stream_item_service import StreamItemService

logger = logging.getLogger(__name__)


def _log_endpoints(app: FastAPI) -> None:
    for route in app.routes:
        if not isinstance(route, APIRoute):
            continue
        for method in sorted(route.methods or ()):
            logger.info("%s %s", method, route.path)


def create_app(
    *,
    settings: Settings | None = None,
    store: DataStore[StreamItem] | None = None,
    registry: ShutdownRegistry | None = None,
) -> FastAPI:
    """Factory compatible with uvicorn (``--factory``) and the tests."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    registry = registry or shutdown_registry

    if store is None:
        store = DataStore(
            settings.stream_items_store,
            directory=settings.data_dir,
            flush_delay=settings.flush_delay_seconds,
            indent=settings.json_indent,
            registry=registry,
        )
        registry.install()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _log_endpoints(app)
        logger.info("API ready")
        yield
        # ASGI shutdown is the "about to exit" notification.
        registry.trigger("lifespan-shutdown")

    app = FastAPI(title="Stream List API", lifespan=lifespan)
    app.state.settings = settings
    app.state.stream_items = StreamItemService(store)
    app.include_router(stream_items_router.router)
    app.include_router(health_router.router)
    return app
