import sys
import time
from contextlib import asynccontextmanager
from uuid import uuid4

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from fastapi.staticfiles import StaticFiles
from loguru import logger

from gallery.config import Settings, settings
from gallery.errors import register_exception_handlers
from gallery.routes.health import router as health_router
from gallery.routes.images import router as images_router
from gallery.routes.upload import router as upload_router
from gallery.services.rate_limit import RateLimiter, client_address
from gallery.services.storage import ensure_storage_dir


LOG_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | req={extra[request_id]} client={extra[client]} | "
    "{name}:{line} | {message}"
)


def _default_context(record) -> None:
    record["extra"].setdefault("request_id", "-")
    record["extra"].setdefault("client", "-")


def _configure_logging(app_settings: Settings) -> None:
    logger.remove()
    logger.configure(patcher=_default_context)
    logger.add(sys.stderr, level=app_settings.log_level.upper(), format=LOG_FORMAT, backtrace=app_settings.debug)


def create_app(app_settings: Settings = settings) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _configure_logging(app_settings)
        ensure_storage_dir(app_settings.upload_path)
        app.state.settings = app_settings
        app.state.upload_limiter = RateLimiter(
            max_requests=app_settings.rate_limit_max_requests,
            window_seconds=app_settings.rate_limit_window_seconds,
        )
        logger.bind(request_id="-").info(
            "Starting app app_name={} upload_dir={} log_level={}",
            app_settings.app_name,
            app_settings.upload_dir,
            app_settings.log_level,
        )
        yield
        logger.bind(request_id="-").info("Shutting down app app_name={}", app_settings.app_name)

    app = FastAPI(title=app_settings.app_name, debug=app_settings.debug, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(upload_router)
    app.include_router(images_router)

    @app.middleware("http")
    async def request_context(request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid4().hex
        started = time.perf_counter()
        with logger.contextualize(request_id=request_id, client=client_address(request)):
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("{} {} raised", request.method, request.url.path)
                raise
            elapsed_ms = (time.perf_counter() - started) * 1000
            log = logger.info if request.url.path.startswith("/api/") else logger.debug
            log("{} {} -> {} in {:.1f}ms", request.method, request.url.path, response.status_code, elapsed_ms)
        response.headers["X-Request-ID"] = request_id
        return response

    # The storage directory is created in the lifespan, after mounting.
    app.mount("/uploads", StaticFiles(directory=app_settings.upload_dir, check_dir=False), name="uploads")
    if app_settings.public_path.exists():
        app.mount("/", StaticFiles(directory=app_settings.public_dir, html=True), name="public")

    return app


app = create_app()


def run() -> None:
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
