"""Patient repository: identity-number uniqueness, gestational age rule, search and paging."""
from datetime import date, datetime

import pytest

from helpers import (
    assessment_payload,
    audit_count,
    backdate,
    environment_payload,
    needs_payload,
    patient_payload,
)
from sirana.core.errors import ConflictError, NotFoundError, ValidationError
from sirana.models import AuditLog, EnvironmentAssessment, MedicalAssessment, Patient
from sirana.repositories import (
    AssessmentRepository,
    EnvironmentRepository,
    NeedsRepository,
    PatientRepository,
)


class TestPatientCreate:
    def test_round_trip_returns_supplied_fields(self, session, officer):
        repo = PatientRepository(session)
        payload = patient_payload(
            nik="7271010101850002",
            religion="islam",
            village="Besusu Barat",
            phone="081234567890",
        )
        created = repo.create(payload, officer.id)

        fetched = repo.get(created.id)
        for key, value in payload.items():
            assert getattr(fetched, key) == value
        assert fetched.created_by == officer.id
        assert fetched.creator.name == officer.name

    def test_duplicate_nik_is_conflict(self, session, officer, patient):
        repo = PatientRepository(session)
        with pytest.raises(ConflictError) as exc_info:
            repo.create(patient_payload(name="Another Person", nik=patient.nik), officer.id)
        assert exc_info.value.field == "nik"
        assert session.query(Patient).count() == 1

    def test_null_nik_never_conflicts(self, session, officer):
        repo = PatientRepository(session)
        repo.create(patient_payload(), officer.id)
        repo.create(patient_payload(name="Second Patient", nik=None), officer.id)
        repo.create(patient_payload(name="Third Patient", nik=""), officer.id)
        assert session.query(Patient).filter(Patient.nik.is_(None)).count() == 3

    def test_every_invalid_field_is_reported(self, session, officer):
        repo = PatientRepository(session)
        with pytest.raises(ValidationError) as exc_info:
            repo.create(patient_payload(name="Al", nik="12345", sex="unknown"), officer.id)
        assert set(exc_info.value.fields) >= {"name", "nik", "sex"}

    def test_nik_must_be_ascii_digits(self, session, officer):
        repo = PatientRepository(session)
        with pytest.raises(ValidationError) as exc_info:
            repo.create(patient_payload(nik="72710101018500AB"), officer.id)
        assert exc_info.value.fields == ["nik"]

    def test_missing_required_fields(self, session, officer):
        repo = PatientRepository(session)
        with pytest.raises(ValidationError) as exc_info:
            repo.create({"name": "Tanpa Data"}, officer.id)
        assert set(exc_info.value.fields) >= {"sex", "birthplace", "birth_date", "address", "age_group"}

    def test_pregnant_woman_keeps_gestational_age(self, session, officer):
        """Siti Aminah, 28 weeks pregnant; an adult with the same value gets null."""
        repo = PatientRepository(session)
        siti = repo.create(
            patient_payload(
                name="Siti Aminah",
                sex="female",
                age_group="pregnant_woman",
                gestational_weeks=28,
                address="Jl. Merdeka 1",
            ),
            officer.id,
        )
        assert repo.get(siti.id).gestational_weeks == 28

        adult = repo.create(
            patient_payload(name="Dewi Lestari", sex="female", age_group="adult", gestational_weeks=28),
            officer.id,
        )
        assert adult.gestational_weeks is None
        assert repo.get(adult.id).gestational_weeks is None

    def test_blank_optional_text_becomes_null(self, session, officer):
        created = PatientRepository(session).create(
            patient_payload(occupation="   ", phone=""), officer.id
        )
        assert created.occupation is None
        assert created.phone is None

    def test_create_writes_audit_entry(self, session, officer):
        before = audit_count(session, "Patient")
        created = PatientRepository(session).create(patient_payload(), officer.id)
        assert audit_count(session, "Patient") == before + 1
        entry = session.query(AuditLog).filter(AuditLog.entity_id == created.id).one()
        assert entry.action == "CREATE_PATIENT"
        assert entry.user_id == officer.id
        assert entry.old_data is None
        assert entry.new_data["name"] == "Budi Santoso"
        assert entry.new_data["birth_date"] == "1985-04-12"


class TestPatientUpdate:
    def test_partial_merge(self, session, officer, patient):
        repo = PatientRepository(session)
        updated = repo.update(patient.id, {"occupation": "Nelayan"}, officer.id)
        assert updated.occupation == "Nelayan"
        assert updated.name == patient.name
        assert updated.nik == patient.nik

    def test_changing_nik_to_taken_value_conflicts(self, session, officer, patient):
        repo = PatientRepository(session)
        other = repo.create(patient_payload(name="Other Person", nik="7271010101850099"), officer.id)
        with pytest.raises(ConflictError):
            repo.update(other.id, {"nik": patient.nik}, officer.id)
        assert repo.get(other.id).nik == "7271010101850099"

    def test_keeping_own_nik_is_not_a_conflict(self, session, officer, patient):
        updated = PatientRepository(session).update(patient.id, {"nik": patient.nik, "rt": "003"}, officer.id)
        assert updated.rt == "003"

    def test_required_field_cannot_be_blanked(self, session, officer, patient):
        repo = PatientRepository(session)
        before = audit_count(session, "Patient")
        with pytest.raises(ValidationError) as exc_info:
            repo.update(patient.id, {"name": "", "address": None}, officer.id)
        assert set(exc_info.value.fields) == {"name", "address"}
        assert audit_count(session, "Patient") == before

    def test_leaving_pregnancy_clears_gestational_age(self, session, officer):
        repo = PatientRepository(session)
        siti = repo.create(
            patient_payload(name="Siti Aminah", sex="female", age_group="pregnant_woman", gestational_weeks=28),
            officer.id,
        )
        updated = repo.update(siti.id, {"age_group": "adult"}, officer.id)
        assert updated.gestational_weeks is None

    def test_unknown_patient(self, session, officer):
        with pytest.raises(NotFoundError):
            PatientRepository(session).update("missing-id", {"occupation": "Guru"}, officer.id)


class TestPatientDelete:
    def test_delete_cascades_to_dependent_records(self, session, officer, patient):
        AssessmentRepository(session).create(assessment_payload(patient.id), officer.id)
        EnvironmentRepository(session).create(environment_payload(patient.id), officer.id)
        NeedsRepository(session).create(needs_payload(patient.id, medicines="Paracetamol"), officer.id)

        PatientRepository(session).delete(patient.id, officer.id)

        assert session.query(Patient).count() == 0
        assert session.query(MedicalAssessment).count() == 0
        # The trail outlives the rows it describes
        assert audit_count(session, "MedicalAssessment") == 1

    def test_delete_audit_has_old_data_only(self, session, officer, patient):
        PatientRepository(session).delete(patient.id, officer.id)
        entry = session.query(AuditLog).filter(AuditLog.action == "DELETE_PATIENT").one()
        assert entry.old_data["nik"] == patient.nik
        assert entry.new_data is None

    def test_delete_unknown_patient(self, session, officer):
        before = audit_count(session)
        with pytest.raises(NotFoundError):
            PatientRepository(session).delete("missing-id", officer.id)
        assert audit_count(session) == before


class TestPatientQueries:
    def test_second_page_of_twenty_five(self, session, officer):
        repo = PatientRepository(session)
        for i in range(25):
            repo.create(patient_payload(name=f"Patient {i:02d}"), officer.id)

        page = repo.list(page=2, page_size=10)
        assert len(page.items) == 10
        assert page.total == 25
        assert page.total_pages == 3
        assert page.page == 2

    def test_newest_first(self, session, officer):
        repo = PatientRepository(session)
        first = repo.create(patient_payload(name="First Patient"), officer.id)
        backdate(session, Patient, first.id, datetime(2024, 1, 1, 8, 0))
        second = repo.create(patient_payload(name="Second Patient"), officer.id)
        ids = [p.id for p in repo.list().items]
        assert ids.index(second.id) < ids.index(first.id)

    def test_non_positive_paging_rejected(self, session):
        with pytest.raises(ValidationError) as exc_info:
            PatientRepository(session).list(page=0, page_size=0)
        assert set(exc_info.value.fields) == {"page", "page_size"}

    def test_search_is_case_insensitive_over_name_nik_and_address(self, session, officer, patient):
        repo = PatientRepository(session)
        repo.create(patient_payload(name="Siti Aminah", address="Jl. Merdeka 1", sex="female"), officer.id)

        assert [p.name for p in repo.list({"search": "siti"}).items] == ["Siti Aminah"]
        assert [p.name for p in repo.list({"search": "MERDEKA"}).items] == ["Siti Aminah"]
        assert [p.id for p in repo.list({"search": "85000"}).items] == [patient.id]

    def test_search_wildcards_match_literally(self, session, officer, patient):
        repo = PatientRepository(session)
        repo.create(patient_payload(name="Siti Aminah", address="Blok_A 100% rusak"), officer.id)

        assert repo.list({"search": "%"}).total == 1
        assert repo.list({"search": "_"}).total == 1
        assert repo.list({"search": "k_a"}).total == 1
        assert repo.list({"search": "100%"}).total == 1
        assert repo.list({"search": "s%a"}).total == 0
        assert repo.list({"search": "\\"}).total == 0

    def test_search_percent_matches_nothing_without_percent(self, session, officer, patient):
        PatientRepository(session).create(patient_payload(name="Siti Aminah"), officer.id)
        assert PatientRepository(session).list({"search": "%"}).total == 0

    def test_enum_filters(self, session, officer, patient):
        repo = PatientRepository(session)
        repo.create(patient_payload(name="Siti Aminah", sex="female", age_group="elderly"), officer.id)
        assert repo.list({"sex": "female"}).total == 1
        assert repo.list({"age_group": "adult"}).total == 1

    def test_invalid_filter_value(self, session):
        with pytest.raises(ValidationError):
            PatientRepository(session).list({"age_group": "teenager"})

    def test_created_range_includes_whole_end_day(self, session, officer, patient):
        backdate(session, Patient, patient.id, datetime(2024, 1, 15, 23, 59))
        repo = PatientRepository(session)
        assert repo.list({"created_from": date(2024, 1, 15), "created_to": date(2024, 1, 15)}).total == 1
        assert repo.list({"created_to": date(2024, 1, 14)}).total == 0
        assert repo.list({"created_from": date(2024, 1, 16)}).total == 0

    def test_get_by_nik(self, session, patient):
        repo = PatientRepository(session)
        assert repo.get_by_nik(patient.nik).id == patient.id
        with pytest.raises(NotFoundError) as exc_info:
            repo.get_by_nik("0000000000000000")
        assert exc_info.value.field == "nik"

    def test_detail_expands_recent_records(self, session, officer, patient):
        assessments = AssessmentRepository(session)
        for i in range(6):
            assessments.create(assessment_payload(patient.id, working_diagnosis=f"Diagnosis {i}"), officer.id)
        older_env = EnvironmentRepository(session).create(environment_payload(patient.id), officer.id)
        backdate(session, EnvironmentAssessment, older_env.id, datetime(2024, 1, 1, 8, 0))
        latest_env = EnvironmentRepository(session).create(
            environment_payload(patient.id, sanitation_condition="poor"), officer.id
        )

        detail = PatientRepository(session).get_detail(patient.id)
        assert len(detail.recent_assessments) == 5
        assert detail.latest_environment.id == latest_env.id
        assert detail.latest_needs is None
        assert detail.creator.id == officer.id
