"""Shared FastAPI dependencies: sessions, audit request context, paging and repositories."""
from dataclasses import dataclass
from typing import Callable, Iterator, Optional, Type

from fastapi import Depends, Query, Request
from sqlalchemy.orm import Session

from ..core.config import settings
from ..models.base import Database
from ..repositories.base import Repository
from ..services.audit import AuditContext
from ..services.report_generator import SurveillanceReportGenerator
from ..services.statistics import StatisticsService


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_db(database: Database = Depends(get_database)) -> Iterator[Session]:
    db = database.session()
    try:
        yield db
    finally:
        db.close()


def get_audit_context(request: Request) -> AuditContext:
    return AuditContext(
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
    )


@dataclass
class Paging:
    page: int
    page_size: int


def get_paging(
    page: int = Query(1, description="1-based page number"),
    page_size: Optional[int] = Query(None, description="Rows per page"),
) -> Paging:
    size = page_size if page_size is not None else settings.DEFAULT_PAGE_SIZE
    if settings.MAX_PAGE_SIZE and size > settings.MAX_PAGE_SIZE:
        size = settings.MAX_PAGE_SIZE
    # Non-positive values are rejected by the repository with a ValidationError
    return Paging(page=page, page_size=size)


def repository(cls: Type[Repository]) -> Callable[..., Repository]:
    """Dependency factory binding a repository to the request session and audit context."""

    def dependency(
        db: Session = Depends(get_db),
        context: AuditContext = Depends(get_audit_context),
    ) -> Repository:
        return cls(db, context=context)

    dependency.__name__ = f"get_{cls.__name__}"
    return dependency


def get_statistics(database: Database = Depends(get_database)) -> StatisticsService:
    return StatisticsService(database)


def get_report_generator(db: Session = Depends(get_db)) -> SurveillanceReportGenerator:
    return SurveillanceReportGenerator(db)
