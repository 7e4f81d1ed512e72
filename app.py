import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.staticfiles import StaticFiles

import config
from db import create_engine_for, create_session_maker, create_db_and_tables
from exceptions import CatalogException
from middleware.security_headers import SecurityHeadersMiddleware
from services.cart import CartLedger
from services.media import MediaRegistry
from utils.error_handler import http_status_for, error_body
from utils.file_storage import LocalFileStorage
from web.cart_router import cart_router
from web.media_router import media_router
from web.products_router import products_router


def create_app(db_url: str | None = None, upload_root: str | None = None,
               storage_limit_bytes: int | None = None) -> FastAPI:
    """
    Build the catalog application.

    Arguments default to the values in config; tests pass their own
    database URL and upload directory.
    """
    db_url = db_url or config.DB_URL
    storage = LocalFileStorage(upload_root or config.UPLOAD_ROOT, config.UPLOAD_URL_PREFIX)
    # StaticFiles refuses to mount a directory that doesn't exist yet
    storage.ensure_root()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan event handler for startup and shutdown."""
        # Startup
        engine = create_engine_for(db_url)
        await create_db_and_tables(engine)
        app.state.engine = engine
        app.state.session_maker = create_session_maker(engine)
        logging.info(f"[Startup] Catalog ready, uploads in {storage.root}, "
                     f"storage limit {app.state.media_registry.quota_bytes} bytes")

        yield

        # Shutdown
        await engine.dispose()
        logging.warning('Shutting down..')

    app = FastAPI(title="BOM Catalog", lifespan=lifespan)
    app.state.media_registry = MediaRegistry(storage, storage_limit_bytes or config.STORAGE_LIMIT_BYTES)
    app.state.cart_ledger = CartLedger(config.CART_LEDGER_NAME)

    if config.SECURITY_HEADERS_ENABLED:
        app.add_middleware(SecurityHeadersMiddleware)
        logging.debug("[Startup] Security headers middleware enabled")

    if config.CORS_ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ALLOWED_ORIGINS,
            allow_credentials=False,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["Content-Type", "Authorization"],
        )
        logging.debug(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")

    app.include_router(products_router)
    app.include_router(media_router)
    app.include_router(cart_router)
    app.mount(config.UPLOAD_URL_PREFIX, StaticFiles(directory=storage.root), name="uploads")

    @app.get("/", response_class=PlainTextResponse)
    async def index():
        return "BOM catalog is running"

    # Health check endpoint (for Docker container monitoring)
    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    @app.exception_handler(CatalogException)
    async def catalog_exception_handler(request: Request, exc: CatalogException):
        return JSONResponse(status_code=http_status_for(exc), content=error_body(exc))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        logging.warning(f"Rejected request to {request.url.path}: {field or 'body'}: {first.get('msg')}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": f"{field or 'body'}: {first.get('msg', 'invalid request')}",
                     "details": {"field": field or None}},
        )

    @app.exception_handler(Exception)
    async def exception_handler(request: Request, exc: Exception):
        traceback_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        logging.error(f"Unhandled error on {request.method} {request.url.path}: {exc}\n{traceback_str}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )

    return app
