"""
SIRANA - Post-disaster Health Surveillance API
Patients, medical and environment assessments, needs, disaster events and reports.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import admin, assessments, dashboard, disasters, environments, exports, needs, patients, users
from .core.config import settings
from .core.errors import (
    ConflictError,
    NotFoundError,
    SiranaError,
    StorageError,
    UnsupportedInputError,
    ValidationError,
)
from .models.base import Database

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
    UnsupportedInputError: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
}


async def sirana_error_handler(request: Request, exc: SiranaError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=status_code, content=exc.to_dict())


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the application; ``database`` is injected by tests, otherwise created from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        db = database or Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        # NOTE: In production, use Alembic migrations instead of create_all()
        if settings.AUTO_CREATE_TABLES:
            db.create_all()
        app.state.database = db
        logger.info("%s %s started", settings.APP_NAME, settings.VERSION)
        yield
        if database is None:
            db.dispose()

    app = FastAPI(
        title="SIRANA Disaster Health Surveillance API",
        description=(
            "Field data collection for post-disaster health surveillance: patient "
            "registration, medical and environment assessments, needs identification, "
            "disaster events, statistics and spreadsheet reports."
        ),
        version=settings.VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    if database is not None:
        app.state.database = database

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(SiranaError, sirana_error_handler)

    for module in (users, patients, assessments, environments, needs, disasters, dashboard, exports, admin):
        app.include_router(module.router, prefix="/api/v1")

    @app.get("/health")
    def health_check():
        return {"status": "healthy", "service": "SIRANA API", "version": settings.VERSION}

    return app


app = create_app()
