from datetime import date, datetime, timedelta

import pytest

from endodelivery import dashboard_service, services
from endodelivery.errors import NotFoundError
from endodelivery.models import PaymentMethod, PaymentStatus, ProcedureType, utcnow


def test_dentist_crud_and_active_filter(dentist):
    retired = services.create_dentist({"name": "  Dr. Paulo Neves  "})
    assert retired.name == "Dr. Paulo Neves"

    services.update_dentist(retired.id, {"is_active": False})
    assert [d.id for d in services.list_dentists(only_active=True)] == [dentist.id]
    assert len(services.list_dentists()) == 2

    services.delete_dentist(retired.id)
    with pytest.raises(NotFoundError):
        services.get_dentist(retired.id)


def test_missing_patient_raises_not_found():
    with pytest.raises(NotFoundError):
        services.update_patient(42, {"name": "Nobody"})
    with pytest.raises(NotFoundError):
        services.delete_patient(42)


def test_procedures_carry_names_and_fall_back_to_unknown(make_procedure, patient, dentist):
    known = make_procedure()
    orphan = make_procedure(patient_id=9999, procedure_date=date(2024, 1, 11))

    rows = {r["id"]: r for r in services.list_procedures()}
    assert rows[known.id]["patient_name"] == "João Silva"
    assert rows[known.id]["dentist_name"] == "Dr. Carlos Mendes"
    assert rows[orphan.id]["patient_name"] == services.UNKNOWN_PATIENT

    assert services.get_procedure_detail(known.id)["dentist_name"] == dentist.name
    with pytest.raises(NotFoundError):
        services.get_procedure_detail(12345)


def test_procedure_filters_patient_takes_precedence(make_procedure, patient, other_dentist):
    mine = make_procedure()
    make_procedure(dentist_id=other_dentist.id, patient_id=9999)

    by_patient = services.list_procedures(patient_id=patient.id, dentist_id=other_dentist.id)
    assert [r["id"] for r in by_patient] == [mine.id]
    assert len(services.list_procedures(dentist_id=other_dentist.id)) == 1


def test_procedures_ordered_by_date_desc(make_procedure):
    old = make_procedure(procedure_date=date(2024, 1, 1))
    new = make_procedure(procedure_date=date(2024, 3, 1))
    assert [r["id"] for r in services.list_procedures()] == [new.id, old.id]
    assert [r["id"] for r in dashboard_service.recent_procedures(1)] == [new.id]


def test_invoice_details(make_procedure):
    proc = make_procedure(value=800)
    inv = services.create_invoice({"procedure_id": proc.id, "invoice_number": "NF-1", "invoice_value": 800})

    detail = services.get_invoice_detail(inv.id)
    assert detail["procedure_details"]["id"] == proc.id
    assert detail["procedure_details"]["patient_name"] == "João Silva"
    assert [i["id"] for i in services.list_invoices(procedure_id=proc.id)] == [inv.id]
    assert services.list_invoices(procedure_id=proc.id + 1) == []


def _appointment(patient, dentist, **overrides):
    data = {
        "patient_id": patient.id,
        "dentist_id": dentist.id,
        "tooth_number": 46,
        "procedure_type": ProcedureType.RETREATMENT,
        "appointment_date": utcnow() + timedelta(days=2),
        "notes": "Dor à percussão",
    }
    data.update(overrides)
    return services.create_appointment(data)


def test_convert_appointment_to_procedure(patient, dentist):
    app = _appointment(patient, dentist)

    proc = services.convert_appointment_to_procedure(app.id)
    assert proc.value == 0
    assert proc.payment_status == PaymentStatus.PENDING
    assert proc.payment_method == PaymentMethod.PENDING
    assert proc.procedure_type == ProcedureType.RETREATMENT
    assert proc.notes == "Dor à percussão"

    stored = services.get_appointment_detail(app.id)
    assert stored["converted_to_procedure"] is True
    assert stored["procedure_id"] == proc.id

    with pytest.raises(ValueError):
        services.convert_appointment_to_procedure(app.id)


def test_convert_incomplete_appointment_fails(patient, dentist):
    app = _appointment(patient, dentist, tooth_number=None)
    with pytest.raises(ValueError, match="toothNumber"):
        services.convert_appointment_to_procedure(app.id)
    assert services.list_procedures() == []

    with pytest.raises(NotFoundError):
        services.convert_appointment_to_procedure(999)


def test_upcoming_appointments(patient, dentist):
    now = datetime(2024, 6, 1, 9, 0)
    _appointment(patient, dentist, appointment_date=datetime(2024, 5, 31, 9, 0))
    soon = _appointment(patient, dentist, appointment_date=datetime(2024, 6, 2, 9, 0))
    later = _appointment(patient, dentist, appointment_date=datetime(2024, 6, 9, 9, 0))

    upcoming = services.upcoming_appointments(limit=5, now=now)
    assert [a["id"] for a in upcoming] == [soon.id, later.id]
    assert len(services.upcoming_appointments(limit=1, now=now)) == 1
