"""
Spreadsheet exports of surveillance records.

Workbooks are built in openpyxl write-only mode and rows are streamed from the
database in batches, so an export covers the full (optionally filtered) record
set with no row cap and bounded memory.
"""
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional

from openpyxl import Workbook
from openpyxl.cell import WriteOnlyCell
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..core.config import settings
from ..core.errors import StorageError
from ..core.time_utils import now_local
from ..models.assessment import FollowUp, MedicalAssessment
from ..models.environment import EnvironmentAssessment, SanitationCondition, WaterAccess
from ..models.patient import AgeGroup
from ..repositories import AssessmentRepository, EnvironmentRepository, NeedsRepository, PatientRepository
from ..schemas.assessment import AssessmentFilters
from ..schemas.environment import EnvironmentFilters
from ..schemas.needs import NeedsFilters
from ..schemas.patient import PatientFilters
from . import labels
from .labels import format_date, label, render
from .statistics import referral_breakdown

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 50

HEADER_FONT = Font(bold=True, color="FFFFFF")
HEADER_FILL = PatternFill(fill_type="solid", start_color="7D3740", end_color="7D3740")
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center")


@dataclass
class ReportDocument:
    filename: str
    content: bytes
    media_type: str = XLSX_MEDIA_TYPE


@dataclass
class SheetColumn:
    header: str
    value: Callable[[Any], Any]
    width: int = 15  # expected content width; the header length is also considered


def fit_width(column: SheetColumn) -> int:
    return min(max(max(len(column.header), column.width) + 2, MIN_COLUMN_WIDTH), MAX_COLUMN_WIDTH)


def blood_pressure(a: MedicalAssessment) -> Optional[str]:
    if a.systolic_bp and a.diastolic_bp:
        return f"{a.systolic_bp}/{a.diastolic_bp}"
    return None


def _patient_attr(name: str) -> Callable[[Any], Any]:
    return lambda row: getattr(row.patient, name) if row.patient else None


def _creator_name(row) -> Optional[str]:
    return row.creator.name if row.creator else None


PATIENT_COLUMNS = [
    SheetColumn("NIK", lambda p: p.nik, 18),
    SheetColumn("Full Name", lambda p: p.name, 30),
    SheetColumn("Sex", lambda p: label(labels.SEX, p.sex)),
    SheetColumn("Birthplace", lambda p: p.birthplace, 20),
    SheetColumn("Birth Date", lambda p: p.birth_date, 18),
    SheetColumn("Age Group", lambda p: label(labels.AGE_GROUP, p.age_group), 22),
    SheetColumn("Gestational Age (weeks)", lambda p: p.gestational_weeks),
    SheetColumn("Religion", lambda p: label(labels.RELIGION, p.religion)),
    SheetColumn("Occupation", lambda p: p.occupation, 20),
    SheetColumn("Phone", lambda p: p.phone, 16),
    SheetColumn("Address", lambda p: p.address, 40),
    SheetColumn("RT", lambda p: p.rt, 5),
    SheetColumn("RW", lambda p: p.rw, 5),
    SheetColumn("Village", lambda p: p.village, 20),
    SheetColumn("District", lambda p: p.district, 20),
    SheetColumn("Regency/City", lambda p: p.regency, 20),
    SheetColumn("Province", lambda p: p.province, 20),
    SheetColumn("Entered By", _creator_name, 25),
    SheetColumn("Entered At", lambda p: p.created_at, 25),
    SheetColumn("Last Updated", lambda p: p.updated_at, 25),
]

ASSESSMENT_COLUMNS = [
    SheetColumn("Assessment ID", lambda a: a.id, 36),
    SheetColumn("Visit Date", lambda a: a.visit_date, 18),
    SheetColumn("Visit Time", lambda a: a.visit_time, 10),
    SheetColumn("Patient NIK", _patient_attr("nik"), 18),
    SheetColumn("Patient Name", _patient_attr("name"), 30),
    SheetColumn("Age Group", lambda a: label(labels.AGE_GROUP, a.patient.age_group) if a.patient else None, 22),
    SheetColumn("Anamnesis Type", lambda a: label(labels.ANAMNESIS_TYPE, a.anamnesis_type)),
    SheetColumn("Chief Complaint", lambda a: a.chief_complaint, 35),
    SheetColumn("Present Illness History", lambda a: a.present_illness_history, 30),
    SheetColumn("Allergy History", lambda a: a.allergy_history, 20),
    SheetColumn("Past Illness History", lambda a: a.past_illness_history, 30),
    SheetColumn("Medication History", lambda a: a.medication_history, 25),
    SheetColumn("GCS Eye", lambda a: a.gcs_eye),
    SheetColumn("GCS Verbal", lambda a: a.gcs_verbal),
    SheetColumn("GCS Motor", lambda a: a.gcs_motor),
    SheetColumn("GCS Total", lambda a: a.gcs_total),
    SheetColumn("General Condition", lambda a: label(labels.GENERAL_CONDITION, a.general_condition)),
    SheetColumn("Systolic BP", lambda a: a.systolic_bp),
    SheetColumn("Diastolic BP", lambda a: a.diastolic_bp),
    SheetColumn("Blood Pressure", blood_pressure),
    SheetColumn("Temperature (C)", lambda a: a.temperature),
    SheetColumn("Pulse (/min)", lambda a: a.pulse),
    SheetColumn("Respiration (/min)", lambda a: a.respiration),
    SheetColumn("Weight (kg)", lambda a: a.weight),
    SheetColumn("Height (cm)", lambda a: a.height),
    SheetColumn("Head", lambda a: a.exam_head, 25),
    SheetColumn("Eyes", lambda a: a.exam_eyes, 25),
    SheetColumn("Mouth", lambda a: a.exam_mouth, 25),
    SheetColumn("Neck", lambda a: a.exam_neck, 25),
    SheetColumn("Thorax", lambda a: a.exam_thorax, 25),
    SheetColumn("Heart", lambda a: a.exam_heart, 25),
    SheetColumn("Lungs", lambda a: a.exam_lungs, 25),
    SheetColumn("Abdomen", lambda a: a.exam_abdomen, 25),
    SheetColumn("Extremities", lambda a: a.exam_extremities, 25),
    SheetColumn("Anogenital", lambda a: a.exam_anogenital, 25),
    SheetColumn("Supplementary Exam", lambda a: label(labels.SUPPLEMENTARY_EXAM, a.supplementary_exam)),
    SheetColumn("Supplementary Result", lambda a: a.supplementary_result, 30),
    SheetColumn("Working Diagnosis", lambda a: a.working_diagnosis, 35),
    SheetColumn("Treatment Plan", lambda a: a.treatment_plan, 30),
    SheetColumn("Follow-up", lambda a: label(labels.FOLLOW_UP, a.follow_up)),
    SheetColumn("Referral Target", lambda a: a.referral_target, 25),
    SheetColumn("Referral Reason", lambda a: a.referral_reason, 30),
    SheetColumn("Education Given To", lambda a: label(labels.EDUCATION_RECIPIENT, a.education_recipient)),
    SheetColumn("Education Notes", lambda a: a.education_notes, 30),
    SheetColumn("Examining Clinician", lambda a: a.examining_clinician, 25),
    SheetColumn("Entered By", _creator_name, 25),
    SheetColumn("Entered At", lambda a: a.created_at, 25),
    SheetColumn("Last Updated", lambda a: a.updated_at, 25),
]

ENVIRONMENT_COLUMNS = [
    SheetColumn("Patient NIK", _patient_attr("nik"), 18),
    SheetColumn("Patient Name", _patient_attr("name"), 30),
    SheetColumn("Address", _patient_attr("address"), 40),
    SheetColumn("Clean Water Access", lambda e: label(labels.WATER_ACCESS, e.clean_water_access)),
    SheetColumn("Sanitation", lambda e: label(labels.SANITATION, e.sanitation_condition)),
    SheetColumn("Photos", lambda e: len(e.house_photos or [])),
    SheetColumn("Notes", lambda e: e.notes, 30),
    SheetColumn("Entered By", _creator_name, 25),
    SheetColumn("Entered At", lambda e: e.created_at, 25),
    SheetColumn("Last Updated", lambda e: e.updated_at, 25),
]

NEEDS_COLUMNS = [
    SheetColumn("Patient NIK", _patient_attr("nik"), 18),
    SheetColumn("Patient Name", _patient_attr("name"), 30),
    SheetColumn("Medicines", lambda n: n.medicines, 35),
    SheetColumn("Medicine Priority", lambda n: label(labels.PRIORITY, n.medicine_priority)),
    SheetColumn("Medical Equipment", lambda n: n.medical_equipment, 35),
    SheetColumn("Equipment Priority", lambda n: label(labels.PRIORITY, n.equipment_priority)),
    SheetColumn("Infrastructure", lambda n: n.infrastructure, 35),
    SheetColumn("Infrastructure Priority", lambda n: label(labels.PRIORITY, n.infrastructure_priority)),
    SheetColumn("Notes", lambda n: n.notes, 30),
    SheetColumn("Entered By", _creator_name, 25),
    SheetColumn("Entered At", lambda n: n.created_at, 25),
    SheetColumn("Last Updated", lambda n: n.updated_at, 25),
]

# Condensed column sets for the comprehensive report
PATIENT_SUMMARY_COLUMNS = [
    SheetColumn("NIK", lambda p: p.nik, 18),
    SheetColumn("Full Name", lambda p: p.name, 30),
    SheetColumn("Sex", lambda p: label(labels.SEX, p.sex)),
    SheetColumn("Birthplace", lambda p: p.birthplace, 20),
    SheetColumn("Birth Date", lambda p: p.birth_date, 18),
    SheetColumn("Age Group", lambda p: label(labels.AGE_GROUP, p.age_group), 22),
    SheetColumn("Religion", lambda p: label(labels.RELIGION, p.religion)),
    SheetColumn("Occupation", lambda p: p.occupation, 20),
    SheetColumn("Address", lambda p: p.address, 40),
    SheetColumn("Village", lambda p: p.village, 18),
    SheetColumn("District", lambda p: p.district, 18),
    SheetColumn("Entered At", lambda p: p.created_at, 20),
]

ASSESSMENT_SUMMARY_COLUMNS = [
    SheetColumn("Visit Date", lambda a: a.visit_date, 18),
    SheetColumn("Patient Name", _patient_attr("name"), 25),
    SheetColumn("Chief Complaint", lambda a: a.chief_complaint, 30),
    SheetColumn("GCS", lambda a: a.gcs_total, 5),
    SheetColumn("BP", blood_pressure, 10),
    SheetColumn("Diagnosis", lambda a: a.working_diagnosis, 30),
    SheetColumn("Follow-up", lambda a: label(labels.FOLLOW_UP, a.follow_up)),
    SheetColumn("Clinician", lambda a: a.examining_clinician, 20),
]

ENVIRONMENT_SUMMARY_COLUMNS = [
    SheetColumn("Patient Name", _patient_attr("name"), 25),
    SheetColumn("Address", _patient_attr("address"), 35),
    SheetColumn("Clean Water", lambda e: label(labels.WATER_ACCESS, e.clean_water_access)),
    SheetColumn("Sanitation", lambda e: label(labels.SANITATION, e.sanitation_condition)),
    SheetColumn("Notes", lambda e: e.notes, 30),
    SheetColumn("Entered At", lambda e: e.created_at, 20),
]

NEEDS_SUMMARY_COLUMNS = [
    SheetColumn("Patient Name", _patient_attr("name"), 25),
    SheetColumn("Medicines", lambda n: n.medicines, 30),
    SheetColumn("Medicine Priority", lambda n: label(labels.PRIORITY, n.medicine_priority)),
    SheetColumn("Medical Equipment", lambda n: n.medical_equipment, 30),
    SheetColumn("Equipment Priority", lambda n: label(labels.PRIORITY, n.equipment_priority)),
    SheetColumn("Infrastructure", lambda n: n.infrastructure, 30),
    SheetColumn("Infrastructure Priority", lambda n: label(labels.PRIORITY, n.infrastructure_priority)),
    SheetColumn("Entered At", lambda n: n.created_at, 20),
]


class SurveillanceReportGenerator:
    """
    Builds xlsx exports for patients, assessments, environment and needs records.

    Single-entity exports carry every field; the comprehensive report opens with a
    summary sheet followed by one condensed sheet per entity. Every data sheet
    ends with a blank row and a ``Total Data: N`` row.
    """

    def __init__(
        self,
        db: Session,
        now: Optional[Callable[[], datetime]] = None,
        batch_size: Optional[int] = None,
        filename_prefix: Optional[str] = None,
    ):
        self.db = db
        self.now = now or now_local
        self.batch_size = batch_size or settings.EXPORT_BATCH_SIZE
        self.filename_prefix = filename_prefix or settings.EXPORT_FILENAME_PREFIX
        self.patients = PatientRepository(db)
        self.assessments = AssessmentRepository(db)
        self.environments = EnvironmentRepository(db)
        self.needs = NeedsRepository(db)

    # ---------------------------------------------------------------- filters

    @staticmethod
    def patient_filters(date_from=None, date_to=None, age_group: Optional[AgeGroup] = None) -> PatientFilters:
        return PatientFilters(created_from=date_from, created_to=date_to, age_group=age_group)

    @staticmethod
    def assessment_filters(date_from=None, date_to=None, follow_up: Optional[FollowUp] = None) -> AssessmentFilters:
        # Assessments are filtered by visit date, not by entry date
        return AssessmentFilters(visit_from=date_from, visit_to=date_to, follow_up=follow_up)

    @staticmethod
    def environment_filters(date_from=None, date_to=None) -> EnvironmentFilters:
        return EnvironmentFilters(created_from=date_from, created_to=date_to)

    @staticmethod
    def needs_filters(date_from=None, date_to=None) -> NeedsFilters:
        return NeedsFilters(created_from=date_from, created_to=date_to)

    # ---------------------------------------------------------------- helpers

    def _filename(self, stem: str) -> str:
        return f"{stem}_{self.filename_prefix}_{self.now():%Y-%m-%d}.xlsx"

    def _assessment_rows(self, filters: AssessmentFilters) -> Iterable[MedicalAssessment]:
        order = (MedicalAssessment.visit_date.desc(), MedicalAssessment.visit_time.desc(), MedicalAssessment.id)
        return self.assessments.iter_all(filters, order_by=order, batch_size=self.batch_size)

    def _header(self, ws, text: str) -> WriteOnlyCell:
        cell = WriteOnlyCell(ws, value=text)
        cell.font = HEADER_FONT
        cell.fill = HEADER_FILL
        cell.alignment = HEADER_ALIGNMENT
        return cell

    def _write_sheet(
        self,
        wb: Workbook,
        title: str,
        columns: List[SheetColumn],
        rows: Iterable[Any],
        noun: str,
    ) -> int:
        """Stream rows into a new sheet; returns the number of data rows written."""
        ws = wb.create_sheet(title)
        ws.column_dimensions["A"].width = 6
        for index, column in enumerate(columns, start=2):
            ws.column_dimensions[get_column_letter(index)].width = fit_width(column)

        ws.append([self._header(ws, "No")] + [self._header(ws, c.header) for c in columns])

        count = 0
        for row in rows:
            count += 1
            ws.append([count] + [render(c.value(row)) for c in columns])

        ws.append([])
        ws.append([None, f"Total Data: {count} {noun}"])
        logger.info("Exported %d rows to sheet '%s'", count, title)
        return count

    def _save(self, wb: Workbook, stem: str) -> ReportDocument:
        buffer = io.BytesIO()
        wb.save(buffer)
        return ReportDocument(filename=self._filename(stem), content=buffer.getvalue())

    def _grouped(self, query: Query, column) -> Dict[str, int]:
        rows = query.with_entities(column, func.count()).order_by(None).group_by(column).all()
        return {value: n for value, n in rows}

    def _guarded(self, build: Callable[[], ReportDocument]) -> ReportDocument:
        try:
            return build()
        except SQLAlchemyError as exc:
            logger.error("Export failed: %s", exc)
            raise StorageError("Could not read records for export") from exc

    # ---------------------------------------------------------------- exports

    def export_patients(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None, age_group: Optional[AgeGroup] = None
    ) -> ReportDocument:
        filters = self.patient_filters(date_from, date_to, age_group)

        def build() -> ReportDocument:
            wb = Workbook(write_only=True)
            rows = self.patients.iter_all(filters, batch_size=self.batch_size)
            self._write_sheet(wb, "Patients", PATIENT_COLUMNS, rows, "patients")
            return self._save(wb, "Patient_Data")

        return self._guarded(build)

    def export_assessments(
        self, date_from: Optional[date] = None, date_to: Optional[date] = None, follow_up: Optional[FollowUp] = None
    ) -> ReportDocument:
        filters = self.assessment_filters(date_from, date_to, follow_up)

        def build() -> ReportDocument:
            wb = Workbook(write_only=True)
            self._write_sheet(wb, "Medical Assessments", ASSESSMENT_COLUMNS, self._assessment_rows(filters), "assessments")
            return self._save(wb, "Medical_Assessments")

        return self._guarded(build)

    def export_environments(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> ReportDocument:
        filters = self.environment_filters(date_from, date_to)

        def build() -> ReportDocument:
            wb = Workbook(write_only=True)
            rows = self.environments.iter_all(filters, batch_size=self.batch_size)
            self._write_sheet(wb, "Environment", ENVIRONMENT_COLUMNS, rows, "environment assessments")
            return self._save(wb, "Environment_Assessments")

        return self._guarded(build)

    def export_needs(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> ReportDocument:
        filters = self.needs_filters(date_from, date_to)

        def build() -> ReportDocument:
            wb = Workbook(write_only=True)
            rows = self.needs.iter_all(filters, batch_size=self.batch_size)
            self._write_sheet(wb, "Needs Identification", NEEDS_COLUMNS, rows, "needs identifications")
            return self._save(wb, "Needs_Identification")

        return self._guarded(build)

    def export_comprehensive(self, date_from: Optional[date] = None, date_to: Optional[date] = None) -> ReportDocument:
        patient_filters = self.patient_filters(date_from, date_to)
        assessment_filters = self.assessment_filters(date_from, date_to)
        environment_filters = self.environment_filters(date_from, date_to)
        needs_filters = self.needs_filters(date_from, date_to)

        def build() -> ReportDocument:
            exported_at = self.now()
            assessment_query = self.assessments.filtered(assessment_filters)
            environment_query = self.environments.filtered(environment_filters)
            totals = {
                "patients": self.patients.filtered(patient_filters).count(),
                "assessments": assessment_query.count(),
                "environments": environment_query.count(),
                "needs": self.needs.filtered(needs_filters).count(),
            }
            follow_up = referral_breakdown(self._grouped(assessment_query, MedicalAssessment.follow_up))
            water = self._grouped(environment_query, EnvironmentAssessment.clean_water_access)
            sanitation = self._grouped(environment_query, EnvironmentAssessment.sanitation_condition)

            wb = Workbook(write_only=True)
            summary = wb.create_sheet("Summary")
            summary.column_dimensions["A"].width = 35
            summary.column_dimensions["B"].width = 20
            summary.append([self._header(summary, "Category"), self._header(summary, "Count")])
            for row in (
                ["SIRANA DATA SUMMARY"],
                [],
                ["Registered patients", totals["patients"]],
                ["Medical assessments", totals["assessments"]],
                ["Environment assessments", totals["environments"]],
                ["Needs identifications", totals["needs"]],
                [],
                ["MEDICAL FOLLOW-UP"],
                ["Referred", follow_up[FollowUp.REFERRED.value]],
                ["Discharged", follow_up[FollowUp.DISCHARGED.value]],
                ["Not referred", follow_up[FollowUp.NOT_REFERRED.value]],
                [],
                ["ENVIRONMENT"],
                ["Clean water available", water.get(WaterAccess.AVAILABLE.value, 0)],
                ["Clean water unavailable", water.get(WaterAccess.UNAVAILABLE.value, 0)],
                ["Good sanitation", sanitation.get(SanitationCondition.GOOD.value, 0)],
                ["Poor sanitation", sanitation.get(SanitationCondition.POOR.value, 0)],
                [],
                ["Export date", format_date(exported_at)],
                ["Export time", f"{exported_at:%H:%M:%S}"],
            ):
                summary.append(row)

            self._write_sheet(
                wb, "Patients", PATIENT_SUMMARY_COLUMNS,
                self.patients.iter_all(patient_filters, batch_size=self.batch_size), "patients",
            )
            self._write_sheet(
                wb, "Medical Assessments", ASSESSMENT_SUMMARY_COLUMNS,
                self._assessment_rows(assessment_filters), "assessments",
            )
            self._write_sheet(
                wb, "Environment", ENVIRONMENT_SUMMARY_COLUMNS,
                self.environments.iter_all(environment_filters, batch_size=self.batch_size), "environment assessments",
            )
            self._write_sheet(
                wb, "Needs Identification", NEEDS_SUMMARY_COLUMNS,
                self.needs.iter_all(needs_filters, batch_size=self.batch_size), "needs identifications",
            )
            logger.info("Comprehensive report built: %s", totals)
            return self._save(wb, "Comprehensive_Report")

        return self._guarded(build)
