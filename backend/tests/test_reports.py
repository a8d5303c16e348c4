"""Spreadsheet exports: layout, rendering, filtering and the comprehensive summary."""
import io
from datetime import date, datetime

import pytest
from openpyxl import load_workbook
from sqlalchemy import text

from helpers import assessment_payload, backdate, environment_payload, needs_payload, patient_payload
from sirana.core.errors import StorageError
from sirana.models import Patient
from sirana.repositories import AssessmentRepository, EnvironmentRepository, NeedsRepository, PatientRepository
from sirana.services.report_generator import XLSX_MEDIA_TYPE, SurveillanceReportGenerator

EXPORTED_AT = datetime(2024, 1, 15, 14, 30, 5)


@pytest.fixture
def generator(database):
    db = database.session()
    yield SurveillanceReportGenerator(db, now=lambda: EXPORTED_AT, batch_size=2)
    db.close()


def read_rows(document, sheet):
    wb = load_workbook(io.BytesIO(document.content))
    return [list(row) for row in wb[sheet].iter_rows(values_only=True)]


def by_header(rows):
    """Data rows as dicts keyed by header, without the trailing blank and total rows."""
    header = rows[0]
    return [dict(zip(header, row)) for row in rows[1:-2]]


class TestPatientExport:
    def test_layout_and_rendering(self, session, officer, patient, generator):
        document = generator.export_patients()
        assert document.filename == "Patient_Data_SIRANA_2024-01-15.xlsx"
        assert document.media_type == XLSX_MEDIA_TYPE

        rows = read_rows(document, "Patients")
        assert rows[0][:3] == ["No", "NIK", "Full Name"]

        (record,) = by_header(rows)
        assert record["No"] == 1
        assert record["NIK"] == "7271010101850001"
        assert record["Sex"] == "Male"
        assert record["Birth Date"] == "12 April 1985"
        assert record["Age Group"] == "Adult (17-59 years)"
        assert record["Religion"] == "-"
        assert record["Entered By"] == officer.name

        assert all(value is None for value in rows[-2])
        assert rows[-1][1] == "Total Data: 1 patients"

    def test_every_row_is_exported_across_batches(self, session, officer, generator):
        repo = PatientRepository(session)
        for i in range(5):
            repo.create(patient_payload(name=f"Patient {i}"), officer.id)

        rows = by_header(read_rows(generator.export_patients(), "Patients"))
        assert [r["No"] for r in rows] == [1, 2, 3, 4, 5]
        assert {r["Full Name"] for r in rows} == {f"Patient {i}" for i in range(5)}

    def test_date_and_age_group_filters(self, session, officer, generator):
        repo = PatientRepository(session)
        old = repo.create(patient_payload(name="Pasien Lama"), officer.id)
        backdate(session, Patient, old.id, datetime(2023, 12, 20, 9, 0))
        recent = repo.create(patient_payload(name="Pasien Baru"), officer.id)
        backdate(session, Patient, recent.id, datetime(2024, 1, 10, 9, 0))
        elderly = repo.create(patient_payload(name="Nenek Ani", sex="female", age_group="elderly"), officer.id)
        backdate(session, Patient, elderly.id, datetime(2024, 1, 12, 23, 0))

        document = generator.export_patients(date_from=date(2024, 1, 1), date_to=date(2024, 1, 12))
        assert {r["Full Name"] for r in by_header(read_rows(document, "Patients"))} == {"Pasien Baru", "Nenek Ani"}

        document = generator.export_patients(age_group="elderly")
        rows = read_rows(document, "Patients")
        assert [r["Full Name"] for r in by_header(rows)] == ["Nenek Ani"]
        assert rows[-1][1] == "Total Data: 1 patients"

    def test_empty_export_still_has_header_and_total(self, generator):
        rows = read_rows(generator.export_patients(), "Patients")
        assert rows[0][0] == "No"
        assert rows[-1][1] == "Total Data: 0 patients"


class TestAssessmentExport:
    def test_filtered_by_visit_date(self, session, officer, patient, generator):
        repo = AssessmentRepository(session)
        repo.create(assessment_payload(patient.id, visit_date=date(2024, 1, 5)), officer.id)
        repo.create(
            assessment_payload(patient.id, visit_date=date(2024, 1, 14), systolic_bp=130, diastolic_bp=85),
            officer.id,
        )

        document = generator.export_assessments(date_from=date(2024, 1, 10), date_to=date(2024, 1, 14))
        assert document.filename == "Medical_Assessments_SIRANA_2024-01-15.xlsx"

        (record,) = by_header(read_rows(document, "Medical Assessments"))
        assert record["Visit Date"] == "14 January 2024"
        assert record["Visit Time"] == "08:30"
        assert record["Patient Name"] == patient.name
        assert record["GCS Total"] == 15
        assert record["Blood Pressure"] == "130/85"
        assert record["Follow-up"] == "Discharged"
        assert record["Anamnesis Type"] == "Auto-anamnesis"

    def test_follow_up_filter(self, session, officer, patient, generator):
        repo = AssessmentRepository(session)
        repo.create(assessment_payload(patient.id, follow_up="referred", referral_target="RSUD Undata"), officer.id)
        repo.create(assessment_payload(patient.id), officer.id)

        rows = read_rows(generator.export_assessments(follow_up="referred"), "Medical Assessments")
        (record,) = by_header(rows)
        assert record["Referral Target"] == "RSUD Undata"
        assert record["Blood Pressure"] == "-"
        assert rows[-1][1] == "Total Data: 1 assessments"


class TestEnvironmentAndNeedsExport:
    def test_environment_sheet(self, session, officer, patient, generator):
        EnvironmentRepository(session).create(
            environment_payload(patient.id, clean_water_access="unavailable", house_photos=["a.jpg", "b.jpg"]),
            officer.id,
        )
        document = generator.export_environments()
        assert document.filename == "Environment_Assessments_SIRANA_2024-01-15.xlsx"

        (record,) = by_header(read_rows(document, "Environment"))
        assert record["Clean Water Access"] == "Unavailable"
        assert record["Sanitation"] == "Good"
        assert record["Photos"] == 2
        assert record["Address"] == patient.address

    def test_needs_lists_are_joined(self, session, officer, patient, generator):
        NeedsRepository(session).create(
            needs_payload(patient.id, medicines="Paracetamol, ORS", medicine_priority="high"), officer.id
        )
        document = generator.export_needs()
        assert document.filename == "Needs_Identification_SIRANA_2024-01-15.xlsx"

        (record,) = by_header(read_rows(document, "Needs Identification"))
        assert record["Medicines"] == "Paracetamol, ORS"
        assert record["Medicine Priority"] == "High"
        assert record["Medical Equipment"] == "-"


class TestComprehensiveReport:
    def test_sheets_and_summary(self, session, officer, patient, generator):
        assessments = AssessmentRepository(session)
        assessments.create(assessment_payload(patient.id, follow_up="referred"), officer.id)
        assessments.create(assessment_payload(patient.id, follow_up="referred"), officer.id)
        assessments.create(assessment_payload(patient.id), officer.id)
        EnvironmentRepository(session).create(
            environment_payload(patient.id, sanitation_condition="poor"), officer.id
        )
        NeedsRepository(session).create(needs_payload(patient.id, infrastructure="Tenda"), officer.id)

        document = generator.export_comprehensive()
        assert document.filename == "Comprehensive_Report_SIRANA_2024-01-15.xlsx"

        wb = load_workbook(io.BytesIO(document.content))
        assert wb.sheetnames == ["Summary", "Patients", "Medical Assessments", "Environment", "Needs Identification"]

        summary = {
            row[0]: row[1]
            for row in wb["Summary"].iter_rows(values_only=True)
            if row[0] is not None and row[1] is not None
        }
        assert summary["Registered patients"] == 1
        assert summary["Medical assessments"] == 3
        assert summary["Environment assessments"] == 1
        assert summary["Needs identifications"] == 1
        assert summary["Referred"] == 2
        assert summary["Discharged"] == 1
        assert summary["Not referred"] == 0
        assert summary["Clean water available"] == 1
        assert summary["Poor sanitation"] == 1
        assert summary["Good sanitation"] == 0
        assert summary["Export date"] == "15 January 2024"
        assert summary["Export time"] == "14:30:05"

        rows = read_rows(document, "Medical Assessments")
        assert rows[0] == ["No", "Visit Date", "Patient Name", "Chief Complaint", "GCS", "BP", "Diagnosis", "Follow-up", "Clinician"]
        assert rows[-1][1] == "Total Data: 3 assessments"

    def test_summary_follows_date_filter(self, session, officer, patient, generator):
        backdate(session, Patient, patient.id, datetime(2023, 6, 1, 8, 0))
        AssessmentRepository(session).create(
            assessment_payload(patient.id, visit_date=date(2023, 6, 2), follow_up="referred"), officer.id
        )

        document = generator.export_comprehensive(date_from=date(2024, 1, 1), date_to=date(2024, 1, 31))
        wb = load_workbook(io.BytesIO(document.content))
        summary = {row[0]: row[1] for row in wb["Summary"].iter_rows(values_only=True) if row[0]}
        assert summary["Registered patients"] == 0
        assert summary["Medical assessments"] == 0
        assert summary["Referred"] == 0
        assert read_rows(document, "Patients")[-1][1] == "Total Data: 0 patients"


class TestExportFailures:
    def test_unreadable_table_is_storage_error(self, database, generator):
        with database.engine.begin() as conn:
            conn.execute(text("DROP TABLE needs_identifications"))
        with pytest.raises(StorageError):
            generator.export_comprehensive()
