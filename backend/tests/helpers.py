"""Minimal valid input records, overridable per test, and small database helpers."""
from datetime import date, datetime, time

from sirana.models import AuditLog


def user_payload(**overrides):
    data = {
        "email": "petugas@sirana.id",
        "hashed_password": "$2b$12$placeholderhashvalue",
        "name": "Petugas Lapangan",
        "role": "field_officer",
    }
    data.update(overrides)
    return data


def patient_payload(**overrides):
    data = {
        "name": "Budi Santoso",
        "sex": "male",
        "birthplace": "Palu",
        "birth_date": date(1985, 4, 12),
        "address": "Jl. Sudirman 5",
        "age_group": "adult",
    }
    data.update(overrides)
    return data


def assessment_payload(patient_id, **overrides):
    data = {
        "patient_id": patient_id,
        "visit_date": date(2024, 1, 15),
        "visit_time": time(8, 30),
        "anamnesis_type": "auto_anamnesis",
        "chief_complaint": "Fever for three days",
        "working_diagnosis": "Dengue fever",
        "examining_clinician": "dr. Rina Wulandari",
    }
    data.update(overrides)
    return data


def environment_payload(patient_id, **overrides):
    data = {
        "patient_id": patient_id,
        "clean_water_access": "available",
        "sanitation_condition": "good",
    }
    data.update(overrides)
    return data


def needs_payload(patient_id, **overrides):
    data = {"patient_id": patient_id}
    data.update(overrides)
    return data


def disaster_payload(**overrides):
    data = {
        "name": "Gempa Palu",
        "disaster_type": "earthquake",
        "occurrence_date": date(2018, 9, 28),
        "location": "Kota Palu",
        "province": "Sulawesi Tengah",
        "regency": "Palu",
    }
    data.update(overrides)
    return data


def audit_count(session, entity_type=None):
    query = session.query(AuditLog)
    if entity_type:
        query = query.filter(AuditLog.entity_type == entity_type)
    return query.count()


def backdate(session, model, entity_id, created_at: datetime):
    """Move a row's creation timestamp, e.g. to place it inside a statistics window."""
    session.query(model).filter(model.id == entity_id).update(
        {model.created_at: created_at}, synchronize_session=False
    )
    session.commit()
