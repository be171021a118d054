import argparse
import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from core.config import Settings, STORE_KINDS, load_settings
from core.photo_store import PhotoStore
from db.repository import build_repository
from routers.inventory import register_router, router as inventory_router
from routers.search import router as search_router

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # basicConfig is a no-op once the root logger has handlers
    logging.getLogger().setLevel(level)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        photo_store = PhotoStore(settings.cache_dir)
        photo_store.ensure_root()
        repository = build_repository(settings)
        await repository.init()

        app.state.photo_store = photo_store
        app.state.repository = repository
        try:
            yield
        finally:
            await repository.close()

    app = FastAPI(
        title="Inventory Service API",
        description="Register inventory items, manage their photos and look them up by id",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    app.include_router(register_router, tags=["inventory"])
    app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
    app.include_router(search_router, tags=["search"])
    return app


app = create_app()


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Inventory service")
    parser.add_argument("-H", "--host", help="Server host (APP_HOST overrides)")
    parser.add_argument("-p", "--port", type=int, help="Server port (APP_PORT overrides)")
    parser.add_argument("-c", "--cache", help="Photo storage directory (CACHE_DIR overrides)")
    parser.add_argument("--store", choices=STORE_KINDS, help="Inventory store (INVENTORY_STORE overrides)")
    return parser.parse_args(argv)


if __name__ == "__main__":
    args = parse_args()
    settings = load_settings(host=args.host, port=args.port, cache_dir=args.cache, store=args.store)
    app = create_app(settings)
    logger.info("Server listening at http://%s:%s (photos in %s)", settings.host, settings.port, settings.cache_dir)
    uvicorn.run(app, host=settings.host, port=settings.port)
