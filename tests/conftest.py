"""
Pytest configuration and fixtures.
"""
import os

# DB SQLite in memoria, da impostare prima di importare il pacchetto
os.environ["USE_SQLITE"] = "true"
os.environ["SQLITE_PATH"] = ":memory:"
os.environ.setdefault("JWT_SECRET", "test-secret")

from datetime import date, datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from endodelivery import auth_models, models, services  # noqa: E402,F401
from endodelivery.api_main import app  # noqa: E402
from endodelivery.auth_security import create_access_token  # noqa: E402
from endodelivery.auth_service import create_user  # noqa: E402
from endodelivery.db import Base, engine  # noqa: E402
from endodelivery.models import PaymentMethod, PaymentStatus, ProcedureType  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_db():
    """Schema ricreato per ogni test."""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    # senza context manager: lo startup (seed) non viene eseguito
    return TestClient(app)


@pytest.fixture
def admin_user():
    """Create an administrator."""
    return create_user("admin", "admin-pass", is_admin=True)


@pytest.fixture
def regular_user():
    return create_user("operator", "operator-pass")


def _headers(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def admin_headers(admin_user):
    return _headers(admin_user)


@pytest.fixture
def user_headers(regular_user):
    return _headers(regular_user)


@pytest.fixture
def dentist():
    """Create a referring dentist."""
    return services.create_dentist({"name": "Dr. Carlos Mendes", "clinic": "Odonto Smile"})


@pytest.fixture
def other_dentist():
    return services.create_dentist({"name": "Dra. Amanda Oliveira", "clinic": "Clínica Oral"})


@pytest.fixture
def patient(dentist):
    """Create a patient registered well before any test window."""
    return services.create_patient(
        {"name": "João Silva", "dentist_id": dentist.id, "created_at": datetime(2020, 1, 1, 9, 0)}
    )


@pytest.fixture
def make_procedure(patient, dentist):
    """Factory: procedura pagata con valori di default sovrascrivibili."""

    def _make(value: float = 500.0, procedure_date: date = date(2024, 1, 10), **overrides):
        data = {
            "patient_id": patient.id,
            "dentist_id": dentist.id,
            "tooth_number": 36,
            "procedure_type": ProcedureType.TREATMENT,
            "value": value,
            "payment_method": PaymentMethod.PIX,
            "payment_status": PaymentStatus.PAID,
            "procedure_date": procedure_date,
        }
        data.update(overrides)
        return services.create_procedure(data)

    return _make
