"""Disaster events and user accounts."""
from datetime import date

import pytest

from helpers import audit_count, disaster_payload, patient_payload, user_payload
from sirana.core.errors import ConflictError, NotFoundError, ValidationError
from sirana.models import AuditLog, User
from sirana.repositories import DisasterRepository, PatientRepository, UserRepository


class TestDisasters:
    def test_create_defaults_to_active(self, session, admin):
        created = DisasterRepository(session).create(disaster_payload(), admin.id)
        assert created.status == "active"
        assert created.occurrence_date == date(2018, 9, 28)

    def test_most_recent_occurrence_first(self, session, admin):
        repo = DisasterRepository(session)
        repo.create(disaster_payload(name="Banjir Sigi", occurrence_date=date(2019, 12, 1)), admin.id)
        repo.create(disaster_payload(name="Gempa Palu", occurrence_date=date(2018, 9, 28)), admin.id)
        repo.create(disaster_payload(name="Longsor Poso", occurrence_date=date(2021, 3, 5)), admin.id)

        assert [d.name for d in repo.list().items] == ["Longsor Poso", "Banjir Sigi", "Gempa Palu"]

    def test_search_and_filters(self, session, admin):
        repo = DisasterRepository(session)
        repo.create(disaster_payload(description="Magnitude 7.4 with tsunami"), admin.id)
        repo.create(
            disaster_payload(
                name="Banjir Bandang Masamba",
                disaster_type="flood",
                location="Masamba",
                province="Sulawesi Selatan",
                regency="Luwu Utara",
                occurrence_date=date(2020, 7, 13),
            ),
            admin.id,
        )
        assert repo.list({"search": "TSUNAMI"}).total == 1
        assert repo.list({"disaster_type": "flood"}).total == 1
        assert repo.list({"province": "selatan"}).total == 1
        assert repo.list({"occurred_from": date(2019, 1, 1)}).total == 1

    def test_province_filter_matches_wildcards_literally(self, session, admin):
        repo = DisasterRepository(session)
        repo.create(disaster_payload(), admin.id)
        assert repo.list({"province": "%"}).total == 0
        assert repo.list({"province": "sulawesi_tengah"}).total == 0
        assert repo.list({"province": "i T"}).total == 1

    def test_update_status_is_audited_separately(self, session, admin):
        repo = DisasterRepository(session)
        created = repo.create(disaster_payload(), admin.id)

        updated = repo.update_status(created.id, "closed", admin.id)
        assert updated.status == "closed"

        entry = session.query(AuditLog).filter(AuditLog.action == "UPDATE_DISASTER_STATUS").one()
        assert entry.entity_type == "DisasterEvent"
        assert entry.old_data["status"] == "active"
        assert entry.new_data["status"] == "closed"

    def test_update_status_rejects_unknown_status(self, session, admin):
        repo = DisasterRepository(session)
        created = repo.create(disaster_payload(), admin.id)
        with pytest.raises(ValidationError) as exc_info:
            repo.update_status(created.id, {"status": "paused"}, admin.id)
        assert exc_info.value.fields == ["status"]

    def test_update_status_unknown_disaster(self, session, admin):
        with pytest.raises(NotFoundError):
            DisasterRepository(session).update_status("missing-id", "closed", admin.id)

    def test_required_fields(self, session, admin):
        with pytest.raises(ValidationError) as exc_info:
            DisasterRepository(session).create({"name": "Gempa"}, admin.id)
        assert set(exc_info.value.fields) >= {"disaster_type", "occurrence_date", "location", "province", "regency"}


class TestUsers:
    def test_hash_never_leaves_the_repository(self, session, admin):
        created = UserRepository(session).create(user_payload(email="Rina@Sirana.id"), admin.id)
        assert created.email == "rina@sirana.id"
        assert "hashed_password" not in created.model_dump()

        entry = session.query(AuditLog).filter(AuditLog.action == "CREATE_USER").filter(
            AuditLog.entity_id == created.id
        ).one()
        assert "hashed_password" not in entry.new_data

    def test_duplicate_email_and_employee_id(self, session, admin):
        repo = UserRepository(session)
        with pytest.raises(ConflictError) as exc_info:
            repo.create(user_payload(email="admin@sirana.id"), admin.id)
        assert exc_info.value.field == "email"

        with pytest.raises(ConflictError) as exc_info:
            repo.create(user_payload(email="new@sirana.id", employee_id=admin.employee_id), admin.id)
        assert exc_info.value.field == "employee_id"

    def test_invalid_email(self, session, admin):
        with pytest.raises(ValidationError) as exc_info:
            UserRepository(session).create(user_payload(email="not-an-email"), admin.id)
        assert exc_info.value.fields == ["email"]

    @pytest.mark.parametrize("email", ["bad name@sirana.id", "a@b..id", "a@@b.id", "x@-.-"])
    def test_malformed_emails_are_rejected(self, session, admin, email):
        repo = UserRepository(session)
        before = repo.list().total
        with pytest.raises(ValidationError) as exc_info:
            repo.create(user_payload(email=email), admin.id)
        assert exc_info.value.fields == ["email"]
        assert repo.list().total == before

    def test_update_validates_and_lowercases_email(self, session, admin, officer):
        repo = UserRepository(session)
        with pytest.raises(ValidationError):
            repo.update(officer.id, {"email": "petugas@@sirana.id"}, admin.id)

        updated = repo.update(officer.id, {"email": "Petugas.Baru@SIRANA.id"}, admin.id)
        assert updated.email == "petugas.baru@sirana.id"

    def test_cannot_delete_self(self, session, admin):
        before = audit_count(session, "User")
        with pytest.raises(ValidationError):
            UserRepository(session).delete(admin.id, admin.id)
        assert session.get(User, admin.id) is not None
        assert audit_count(session, "User") == before

    def test_cannot_delete_user_who_owns_records(self, session, admin, officer):
        PatientRepository(session).create(patient_payload(), officer.id)
        with pytest.raises(ValidationError):
            UserRepository(session).delete(officer.id, admin.id)

    def test_delete_other_user(self, session, admin, officer):
        UserRepository(session).delete(officer.id, admin.id)
        assert session.get(User, officer.id) is None
        assert session.query(AuditLog).filter(AuditLog.action == "DELETE_USER").count() == 1

    def test_role_filter_and_touch_login(self, session, admin, officer):
        repo = UserRepository(session)
        assert [u.id for u in repo.list({"role": "administrator"}).items] == [admin.id]

        repo.touch_login(officer.id)
        assert repo.get(officer.id).last_login is not None
        assert repo.get_by_email("PETUGAS@sirana.id").id == officer.id
