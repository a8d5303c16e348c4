import pytest

from helpers import patient_payload, user_payload
from sirana.models.base import Database
from sirana.repositories import PatientRepository, UserRepository

SYSTEM_ACTOR = "system"


@pytest.fixture
def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'sirana_test.db'}")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def session(database):
    db = database.session()
    yield db
    db.close()


@pytest.fixture
def admin(session):
    return UserRepository(session).create(
        user_payload(
            email="admin@sirana.id",
            name="Admin Pusat",
            role="administrator",
            employee_id="198001012005011001",
        ),
        SYSTEM_ACTOR,
    )


@pytest.fixture
def officer(session):
    return UserRepository(session).create(user_payload(), SYSTEM_ACTOR)


@pytest.fixture
def patient(session, officer):
    return PatientRepository(session).create(patient_payload(nik="7271010101850001"), officer.id)
