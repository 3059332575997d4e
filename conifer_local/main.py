# conifer_local/main.py
import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from conifer_local.api import backups, collections, data, indexes, inference
from conifer_local.config import Settings
from conifer_local.container import Container, require_api_key
from conifer_local.domain.errors import DomainError, error_envelope


def _configure_logging(settings: Settings):
    logger = logging.getLogger("conifer_local")
    logger.setLevel(settings.log_level)
    if not logger.handlers:
        fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s")

        stream_handler = logging.StreamHandler()
        stream_handler.setFormatter(fmt)
        logger.addHandler(stream_handler)

        if settings.log_file:
            log_file = Path(settings.log_file)
            try:
                log_file.parent.mkdir(parents=True, exist_ok=True)
                file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=5)
                file_handler.setFormatter(fmt)
                logger.addHandler(file_handler)
            except OSError as exc:
                logger.warning("Failed to initialize file logging at %s: %s", log_file, exc)

    logger.propagate = False
    logging.getLogger("uvicorn").setLevel(logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)
    logging.getLogger("uvicorn.error").setLevel(logging.INFO)


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or Settings()
    _configure_logging(settings)
    logger = logging.getLogger("conifer_local")
    container = Container(settings)

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        yield
        container.shutdown()
        logger.info("[shutdown] stopped data-plane servers")

    app = FastAPI(title="Conifer Local", lifespan=lifespan, dependencies=[Depends(require_api_key)])
    app.state.container = container

    # Routers
    app.include_router(indexes.router)
    app.include_router(collections.router)
    app.include_router(backups.router)
    app.include_router(inference.router)
    app.include_router(data.router)

    # Exception handlers
    @app.exception_handler(DomainError)
    async def domain_error_handler(_: Request, exc: DomainError):
        return JSONResponse(status_code=exc.status, content=error_envelope(exc.status, exc.code, exc.detail))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError):
        message = "; ".join(
            f"{'.'.join(str(p) for p in e.get('loc', ()))}: {e.get('msg', '')}" for e in exc.errors()
        )
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=jsonable_encoder(error_envelope(422, "INVALID_ARGUMENT", message)),
        )

    @app.exception_handler(PydanticValidationError)
    async def pydantic_validation_handler(_: Request, exc: PydanticValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder(error_envelope(400, "INVALID_ARGUMENT", str(exc))),
        )

    logger.info("[startup] project=%s environment=%s", settings.project_id, settings.environment)
    return app
