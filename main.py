import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from golinks_app.api.v1 import management, pages, public_api
from golinks_app.api.v1.redirect import build_redirect_router
from golinks_app.cache.factory import CacheBackend, CacheFactory
from golinks_app.config import Settings, settings
from golinks_app.database.connection import create_db_engine, create_session_factory
from golinks_app.database.migrations import migrate
from golinks_app.routing.host_router import INTERNAL, PUBLIC, PUBLIC_API, UI, HostRouter
from golinks_app.services.host_config import HostRegistry, load_host_config
from golinks_app.templating import STATIC_DIR

# --- Logging ---
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger("golinks")


def install_error_handlers(app: FastAPI) -> None:
    """Shared error mapping for every sub-application."""

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        # Malformed JSON and schema violations are client errors, not 422s
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": "invalid request", "errors": jsonable_encoder(exc.errors())},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        logger.exception("database error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "internal error"},
        )


def create_sub_apps(app_settings: Settings) -> dict:
    """
    One FastAPI app per host role. The management routes are shared by
    the UI and internal hosts; only the internal host also redirects.
    """
    ui = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        description="Multi-host URL shortener: management UI and API",
        debug=app_settings.debug,
    )
    ui.include_router(pages.router)
    ui.include_router(management.router)
    ui.include_router(public_api.router)
    ui.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")

    # Docs stay off where /{code} owns the namespace
    no_docs = {"docs_url": None, "redoc_url": None, "openapi_url": None}

    internal = FastAPI(debug=app_settings.debug, **no_docs)
    internal.include_router(pages.router)
    internal.include_router(management.router)
    internal.include_router(public_api.router)
    internal.mount("/static", StaticFiles(directory=STATIC_DIR), name="static")
    internal.include_router(build_redirect_router(internal=True))

    public = FastAPI(debug=app_settings.debug, **no_docs)
    public.include_router(build_redirect_router(internal=False))

    api = FastAPI(debug=app_settings.debug, **no_docs)
    api.include_router(public_api.router)

    sub_apps = {UI: ui, INTERNAL: internal, PUBLIC: public, PUBLIC_API: api}
    for sub_app in sub_apps.values():
        install_error_handlers(sub_app)
    return sub_apps


def create_app(app_settings: Settings = settings) -> FastAPI:
    """
    Build the application.

    Startup opens the store, applies pending migrations (a failure aborts
    startup), loads the host configuration and creates the cache. All of
    it lives in lifespan state; nothing is shared between app instances.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = create_db_engine(app_settings.db_file, app_settings.db_busy_timeout)
        migrate(engine)
        session_factory = create_session_factory(engine)

        registry = HostRegistry()
        db = session_factory()
        try:
            load_host_config(db, registry, app_settings)
        finally:
            db.close()

        cache = CacheFactory.create(CacheBackend(app_settings.cache_backend), app_settings)
        logger.info("%s %s ready (%s)", app_settings.app_name, app_settings.app_version,
                    app_settings.environment)
        yield {
            "session_factory": session_factory,
            "registry": registry,
            "cache": cache,
            "settings": app_settings,
        }
        engine.dispose()

    app = FastAPI(
        title=app_settings.app_name,
        version=app_settings.app_version,
        debug=app_settings.debug,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.add_middleware(HostRouter, sub_apps=create_sub_apps(app_settings))
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=settings.host, port=settings.port)
