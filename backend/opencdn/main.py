"""OpenCDN FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from opencdn import __version__
from opencdn.config import Settings, settings as default_settings
from opencdn.errors import OpenCDNError
from opencdn.services import init_services, shutdown_services

logger = logging.getLogger(__name__)


def _setup_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Noisy third-party loggers to WARNING
    for noisy in ("multipart", "python_multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    if not settings.debug:
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


async def _opencdn_error_handler(request: Request, exc: OpenCDNError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "ApiKey"} if exc.status_code == 401 else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed or missing request fields are plain 400s."""
    fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={
            "error": "bad_request",
            "message": "Bad Request: invalid or missing fields",
            "fields": fields,
        },
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Application factory. Pass ``settings`` to run against another storage root."""
    from opencdn.api.routes import api_router

    settings = settings or default_settings

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        # === STARTUP ===
        _setup_logging(settings)
        Path(settings.storage_path).mkdir(parents=True, exist_ok=True)
        init_services(settings)
        logger.info(
            "OpenCDN v%s started, storage %s, serving files at %s",
            __version__, settings.storage_path, settings.files_base_url,
        )
        try:
            yield
        finally:
            # === SHUTDOWN ===
            shutdown_services()
            logger.info("OpenCDN shutting down")

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
        lifespan=_lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(OpenCDNError, _opencdn_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.include_router(api_router, prefix=settings.api_prefix)

    # StaticFiles checks the directory at mount time
    storage_root = Path(settings.storage_path)
    storage_root.mkdir(parents=True, exist_ok=True)
    app.mount(settings.files_prefix, StaticFiles(directory=storage_root), name="files")

    return app


app = create_app()


def run(**kwargs: Any) -> None:
    import uvicorn

    uvicorn.run(
        "opencdn.main:app",
        host=default_settings.host,
        port=default_settings.port,
        reload=default_settings.debug,
        log_level=default_settings.log_level.lower(),
        **kwargs,
    )


if __name__ == "__main__":
    run()
