from contextlib import asynccontextmanager
from datetime import datetime
import os

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from fleet.api.api import api_router
from fleet.cache import build_cache
from fleet.core.config import settings
from fleet.core.exceptions import FieldValidationError, FleetError, UnexpectedFailure
from fleet.core.logging_config import setup_logging, get_logger
from fleet.db.init_db import ensure_tables_exist
from fleet.schemas.common import ErrorResponse
from fleet.services.locks import EntityLockRegistry
from fleet.services.scheduler import init_scheduler, shutdown_scheduler, get_scheduler_status

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("🚀 Starting up...")

    try:
        await ensure_tables_exist()
        logger.info("📊 Database tables ready")
    except Exception as e:
        logger.warning(f"Table initialisation warning: {e}")

    init_scheduler(app.state.cache)
    yield

    logger.info("🛑 Shutting down...")
    shutdown_scheduler()
    await app.state.cache.close()


def _error_body(status: int, error_type: str, message: str, errors=None) -> dict:
    body = ErrorResponse(
        status=status,
        type=error_type,
        message=message,
        errors=errors,
        timestamp=datetime.now(),
    )
    return body.model_dump(mode="json", exclude_none=True)


def _field_name(loc) -> str:
    # drop the "body"/"query"/"path" prefix FastAPI puts in front of the field
    parts = [str(p) for p in loc[1:]] if len(loc) > 1 else [str(p) for p in loc]
    return ".".join(parts)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(UnexpectedFailure)
    async def handle_unexpected_failure(request: Request, exc: UnexpectedFailure):
        logger.error(f"Unexpected failure on {request.method} {request.url.path}: {exc.message}", exc_info=exc)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, exc.error_type, exc.public_message),
        )

    @app.exception_handler(FieldValidationError)
    async def handle_field_validation(request: Request, exc: FieldValidationError):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, exc.error_type, exc.message, exc.errors),
        )

    @app.exception_handler(FleetError)
    async def handle_fleet_error(request: Request, exc: FleetError):
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.status_code, exc.error_type, exc.message),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = {}
        for error in exc.errors():
            errors.setdefault(_field_name(error.get("loc", ())), error.get("msg", "invalid value"))
        converted = FieldValidationError(errors)
        return JSONResponse(
            status_code=converted.status_code,
            content=_error_body(converted.status_code, converted.error_type, converted.message, converted.errors),
        )

    @app.exception_handler(Exception)
    async def handle_unhandled(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(
            status_code=500,
            content=_error_body(500, UnexpectedFailure.error_type, UnexpectedFailure.public_message),
        )


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_PREFIX}/openapi.json",
        description="Trucks, drivers and deliveries",
        lifespan=lifespan
    )
    app.state.cache = build_cache(settings.CACHE_URL, settings.CACHE_TTL_SECONDS)
    app.state.locks = EntityLockRegistry()

    if settings.BACKEND_CORS_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[str(origin) for origin in settings.BACKEND_CORS_ORIGINS],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=settings.API_PREFIX)

    @app.get("/")
    async def root():
        return {"message": settings.PROJECT_NAME}

    @app.get("/health")
    async def health():
        return {"status": "ok", "scheduler": get_scheduler_status()}

    return app


setup_logging(os.getenv("LOG_LEVEL", "INFO"))
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="127.0.0.1", port=8000, log_level="info")
