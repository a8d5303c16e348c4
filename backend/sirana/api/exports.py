"""Spreadsheet downloads. Every export covers the full filtered record set."""
import io
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from ..core.permissions import PERM_EXPORT_REPORTS
from ..core.security import Actor, require_permission
from ..models.assessment import FollowUp
from ..models.patient import AgeGroup
from ..services.report_generator import ReportDocument, SurveillanceReportGenerator
from .deps import get_report_generator

router = APIRouter(prefix="/export", tags=["export"])

require_export = require_permission(PERM_EXPORT_REPORTS)


def as_download(document: ReportDocument) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(document.content),
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )


@router.get("/patients")
def export_patients(
    date_from: Optional[date] = Query(None, alias="startDate"),
    date_to: Optional[date] = Query(None, alias="endDate"),
    age_group: Optional[AgeGroup] = Query(None, alias="ageGroup"),
    reports: SurveillanceReportGenerator = Depends(get_report_generator),
    _actor: Actor = Depends(require_export),
):
    return as_download(reports.export_patients(date_from, date_to, age_group))


@router.get("/assessments")
def export_assessments(
    date_from: Optional[date] = Query(None, alias="startDate"),
    date_to: Optional[date] = Query(None, alias="endDate"),
    follow_up: Optional[FollowUp] = Query(None, alias="followUp"),
    reports: SurveillanceReportGenerator = Depends(get_report_generator),
    _actor: Actor = Depends(require_export),
):
    """Date range applies to the visit date."""
    return as_download(reports.export_assessments(date_from, date_to, follow_up))


@router.get("/environments")
def export_environments(
    date_from: Optional[date] = Query(None, alias="startDate"),
    date_to: Optional[date] = Query(None, alias="endDate"),
    reports: SurveillanceReportGenerator = Depends(get_report_generator),
    _actor: Actor = Depends(require_export),
):
    return as_download(reports.export_environments(date_from, date_to))


@router.get("/needs")
def export_needs(
    date_from: Optional[date] = Query(None, alias="startDate"),
    date_to: Optional[date] = Query(None, alias="endDate"),
    reports: SurveillanceReportGenerator = Depends(get_report_generator),
    _actor: Actor = Depends(require_export),
):
    return as_download(reports.export_needs(date_from, date_to))


@router.get("/comprehensive")
def export_comprehensive(
    date_from: Optional[date] = Query(None, alias="startDate"),
    date_to: Optional[date] = Query(None, alias="endDate"),
    reports: SurveillanceReportGenerator = Depends(get_report_generator),
    _actor: Actor = Depends(require_export),
):
    """Summary sheet followed by one condensed sheet per record type."""
    return as_download(reports.export_comprehensive(date_from, date_to))
