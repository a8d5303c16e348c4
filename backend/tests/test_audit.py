"""Audit trail: one entry per mutation, written atomically with it, never modified afterwards."""
from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from helpers import assessment_payload, audit_count, patient_payload
from sirana.core.errors import ConflictError, StorageError
from sirana.models import AuditLog, Patient
from sirana.repositories import AssessmentRepository, PatientRepository
from sirana.schemas.audit import AuditFilters
from sirana.services.audit import AuditContext, AuditRecorder, audit_recorder


class FailingRecorder(AuditRecorder):
    """Simulates the audit write failing after the entity row was flushed."""

    def __init__(self, exc):
        self.exc = exc

    def record(self, db, **kwargs):
        raise self.exc


class TestAtomicity:
    def test_failed_audit_write_rolls_back_create(self, session, officer):
        before = audit_count(session)
        repo = PatientRepository(session, recorder=FailingRecorder(StorageError("audit store unavailable")))
        with pytest.raises(StorageError):
            repo.create(patient_payload(), officer.id)
        assert session.query(Patient).count() == 0
        assert audit_count(session) == before

    def test_database_error_during_audit_becomes_storage_error(self, session, officer, patient):
        exc = OperationalError("INSERT INTO audit_logs", {}, Exception("disk I/O error"))
        repo = PatientRepository(session, recorder=FailingRecorder(exc))
        with pytest.raises(StorageError):
            repo.update(patient.id, {"occupation": "Petani"}, officer.id)
        assert PatientRepository(session).get(patient.id).occupation is None

    def test_failed_audit_write_rolls_back_delete(self, session, officer, patient):
        repo = PatientRepository(session, recorder=FailingRecorder(StorageError("audit store unavailable")))
        with pytest.raises(StorageError):
            repo.delete(patient.id, officer.id)
        assert session.query(Patient).filter(Patient.id == patient.id).count() == 1

    def test_conflict_leaves_trail_unchanged(self, session, officer, patient):
        before = audit_count(session, "Patient")
        with pytest.raises(ConflictError):
            PatientRepository(session).create(patient_payload(nik=patient.nik), officer.id)
        assert audit_count(session, "Patient") == before

    def test_one_entry_per_mutation(self, session, officer, patient):
        repo = PatientRepository(session)
        repo.update(patient.id, {"occupation": "Guru"}, officer.id)
        repo.update(patient.id, {"occupation": "Petani"}, officer.id)
        repo.delete(patient.id, officer.id)

        actions = [
            e.action
            for e in session.query(AuditLog)
            .filter(AuditLog.entity_id == patient.id)
            .order_by(AuditLog.created_at, AuditLog.id)
        ]
        assert sorted(actions) == ["CREATE_PATIENT", "DELETE_PATIENT", "UPDATE_PATIENT", "UPDATE_PATIENT"]


class TestSnapshots:
    def test_update_snapshots_match_record_state(self, session, officer, patient):
        repo = PatientRepository(session)
        before = repo.get(patient.id).model_dump(mode="json", exclude={"creator"})

        repo.update(patient.id, {"occupation": "Nelayan", "phone": "0812000111"}, officer.id)
        after = repo.get(patient.id).model_dump(mode="json", exclude={"creator"})

        entry = session.query(AuditLog).filter(AuditLog.action == "UPDATE_PATIENT").one()
        assert entry.old_data == before
        assert entry.new_data == after
        assert entry.entity_type == "Patient"
        assert entry.user_id == officer.id

    def test_request_context_is_attached(self, session, officer):
        context = AuditContext(ip_address="10.0.0.7", user_agent="sirana-mobile/2.1")
        created = PatientRepository(session, context=context).create(patient_payload(), officer.id)
        entry = session.query(AuditLog).filter(AuditLog.entity_id == created.id).one()
        assert entry.ip_address == "10.0.0.7"
        assert entry.user_agent == "sirana-mobile/2.1"


class TestImmutability:
    def test_entries_cannot_be_updated(self, session, patient):
        entry = session.query(AuditLog).filter(AuditLog.entity_id == patient.id).one()
        entry.action = "TAMPERED"
        with pytest.raises(StorageError):
            session.commit()
        session.rollback()
        assert session.query(AuditLog).filter(AuditLog.action == "TAMPERED").count() == 0

    def test_entries_cannot_be_deleted(self, session, patient):
        entry = session.query(AuditLog).filter(AuditLog.entity_id == patient.id).one()
        session.delete(entry)
        with pytest.raises(StorageError):
            session.commit()
        session.rollback()
        assert session.query(AuditLog).filter(AuditLog.entity_id == patient.id).count() == 1


class TestAuditQuery:
    def test_filters_and_newest_first(self, session, officer, patient):
        assessment = AssessmentRepository(session).create(assessment_payload(patient.id), officer.id)
        PatientRepository(session).update(patient.id, {"occupation": "Guru"}, officer.id)

        page = audit_recorder.query(session, AuditFilters(entity_type="Patient"))
        assert page.total == 2
        assert page.items[0].action == "UPDATE_PATIENT"

        page = audit_recorder.query(session, AuditFilters(entity_id=assessment.id))
        assert [e.action for e in page.items] == ["CREATE_ASSESSMENT"]

        page = audit_recorder.query(session, AuditFilters(user_id=officer.id, action="CREATE_PATIENT"))
        assert page.total == 1

    def test_created_range(self, session, officer, patient):
        entry = session.query(AuditLog).filter(AuditLog.entity_id == patient.id).one()
        entry_created = entry.created_at.date()
        assert audit_recorder.query(session, AuditFilters(created_from=entry_created, created_to=entry_created)).total >= 1
        assert audit_recorder.query(session, AuditFilters(created_to=date(2000, 1, 1))).total == 0

    def test_paging(self, session, officer):
        repo = PatientRepository(session)
        for i in range(5):
            repo.create(patient_payload(name=f"Patient {i}"), officer.id)
        page = audit_recorder.query(session, AuditFilters(action="CREATE_PATIENT"), page=2, page_size=2)
        assert len(page.items) == 2
        assert page.total_pages == 3
