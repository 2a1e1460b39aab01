from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, TypeVar

from sqlalchemy import and_, select
from sqlalchemy.orm import Session, aliased

from .db import Base, db_session
from .errors import NotFoundError
from .models import (
    Appointment,
    Dentist,
    Invoice,
    Patient,
    PaymentMethod,
    PaymentStatus,
    Procedure,
    utcnow,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)

UNKNOWN_PATIENT = "Unknown Patient"
UNKNOWN_DENTIST = "Unknown Dentist"


# =========================
# Helper generici
# =========================
def get_or_raise(s: Session, model: type[ModelT], obj_id: int, label: str) -> ModelT:
    obj = s.get(model, obj_id)
    if obj is None:
        raise NotFoundError(label, obj_id)
    return obj


def apply_changes(obj: Base, data: dict[str, Any]) -> None:
    for field, value in data.items():
        setattr(obj, field, value)


def _create(model: type[ModelT], data: dict[str, Any]) -> ModelT:
    with db_session() as s:
        obj = model(**data)
        s.add(obj)
        s.flush()
        return obj


def _update(model: type[ModelT], obj_id: int, data: dict[str, Any], label: str) -> ModelT:
    with db_session() as s:
        obj = get_or_raise(s, model, obj_id, label)
        apply_changes(obj, data)
        s.flush()
        return obj


def _delete(model: type[Base], obj_id: int, label: str) -> None:
    with db_session() as s:
        s.delete(get_or_raise(s, model, obj_id, label))


def _get(model: type[ModelT], obj_id: int, label: str) -> ModelT:
    with db_session() as s:
        return get_or_raise(s, model, obj_id, label)


# =========================
# Dentists
# =========================
def list_dentists(only_active: bool = False) -> list[Dentist]:
    with db_session() as s:
        q = select(Dentist).order_by(Dentist.name)
        if only_active:
            q = q.where(Dentist.is_active.is_(True))
        return list(s.scalars(q))


def get_dentist(dentist_id: int) -> Dentist:
    return _get(Dentist, dentist_id, "Dentist")


def create_dentist(data: dict[str, Any]) -> Dentist:
    data = {**data, "name": data["name"].strip()}
    return _create(Dentist, data)


def update_dentist(dentist_id: int, data: dict[str, Any]) -> Dentist:
    return _update(Dentist, dentist_id, data, "Dentist")


def delete_dentist(dentist_id: int) -> None:
    _delete(Dentist, dentist_id, "Dentist")


# =========================
# Patients
# =========================
def list_patients() -> list[Patient]:
    with db_session() as s:
        return list(s.scalars(select(Patient).order_by(Patient.name)))


def get_patient(patient_id: int) -> Patient:
    return _get(Patient, patient_id, "Patient")


def create_patient(data: dict[str, Any]) -> Patient:
    data = {**data, "name": data["name"].strip()}
    return _create(Patient, data)


def update_patient(patient_id: int, data: dict[str, Any]) -> Patient:
    return _update(Patient, patient_id, data, "Patient")


def delete_patient(patient_id: int) -> None:
    _delete(Patient, patient_id, "Patient")


# =========================
# Procedures
# =========================
def _procedures_with_names(s: Session, *conditions) -> list[dict[str, Any]]:
    """
    Versione 'flat': procedura + nomi paziente/dentista in una sola query.
    Outer join: righe orfane restano visibili con nome "Unknown".
    """
    pat = aliased(Patient)
    den = aliased(Dentist)
    q = (
        select(Procedure, pat.name.label("patient_name"), den.name.label("dentist_name"))
        .outerjoin(pat, pat.id == Procedure.patient_id)
        .outerjoin(den, den.id == Procedure.dentist_id)
        .order_by(Procedure.procedure_date.desc(), Procedure.id.desc())
    )
    if conditions:
        q = q.where(and_(*conditions))

    return [
        procedure_to_dict(r.Procedure, r.patient_name, r.dentist_name)
        for r in s.execute(q).all()
    ]


def procedure_to_dict(p: Procedure, patient_name: str | None, dentist_name: str | None) -> dict[str, Any]:
    return {
        "id": p.id,
        "patient_id": p.patient_id,
        "dentist_id": p.dentist_id,
        "tooth_number": p.tooth_number,
        "procedure_type": p.procedure_type,
        "complexity": p.complexity,
        "diagnosis": p.diagnosis,
        "prognosis": p.prognosis,
        "canal_measurements": p.canal_measurements,
        "value": p.value,
        "payment_method": p.payment_method,
        "payment_status": p.payment_status,
        "payment_date": p.payment_date,
        "procedure_date": p.procedure_date,
        "notes": p.notes,
        "created_at": p.created_at,
        "patient_name": patient_name or UNKNOWN_PATIENT,
        "dentist_name": dentist_name or UNKNOWN_DENTIST,
    }


def list_procedures(patient_id: int | None = None, dentist_id: int | None = None) -> list[dict[str, Any]]:
    # patient_id ha precedenza su dentist_id
    conditions = []
    if patient_id is not None:
        conditions.append(Procedure.patient_id == patient_id)
    elif dentist_id is not None:
        conditions.append(Procedure.dentist_id == dentist_id)

    with db_session() as s:
        return _procedures_with_names(s, *conditions)


def get_procedure(procedure_id: int) -> Procedure:
    return _get(Procedure, procedure_id, "Procedure")


def get_procedure_detail(procedure_id: int) -> dict[str, Any]:
    with db_session() as s:
        rows = _procedures_with_names(s, Procedure.id == procedure_id)
        if not rows:
            raise NotFoundError("Procedure", procedure_id)
        return rows[0]


def create_procedure(data: dict[str, Any]) -> Procedure:
    return _create(Procedure, data)


def update_procedure(procedure_id: int, data: dict[str, Any]) -> Procedure:
    return _update(Procedure, procedure_id, data, "Procedure")


def delete_procedure(procedure_id: int) -> None:
    _delete(Procedure, procedure_id, "Procedure")


# =========================
# Invoices
# =========================
def _invoice_to_dict(s: Session, inv: Invoice) -> dict[str, Any]:
    details = _procedures_with_names(s, Procedure.id == inv.procedure_id)
    return {
        "id": inv.id,
        "procedure_id": inv.procedure_id,
        "invoice_number": inv.invoice_number,
        "invoice_value": inv.invoice_value,
        "invoice_date": inv.invoice_date,
        "is_issued": inv.is_issued,
        "created_at": inv.created_at,
        "procedure_details": details[0] if details else None,
    }


def list_invoices(procedure_id: int | None = None) -> list[dict[str, Any]]:
    with db_session() as s:
        q = select(Invoice).order_by(Invoice.id)
        if procedure_id is not None:
            q = q.where(Invoice.procedure_id == procedure_id)
        return [_invoice_to_dict(s, inv) for inv in s.scalars(q)]


def get_invoice_detail(invoice_id: int) -> dict[str, Any]:
    with db_session() as s:
        return _invoice_to_dict(s, get_or_raise(s, Invoice, invoice_id, "Invoice"))


def create_invoice(data: dict[str, Any]) -> Invoice:
    return _create(Invoice, data)


def update_invoice(invoice_id: int, data: dict[str, Any]) -> Invoice:
    return _update(Invoice, invoice_id, data, "Invoice")


def delete_invoice(invoice_id: int) -> None:
    _delete(Invoice, invoice_id, "Invoice")


# =========================
# Appointments
# =========================
def _appointments_with_names(s: Session, q) -> list[dict[str, Any]]:
    pat = aliased(Patient)
    den = aliased(Dentist)
    q = (
        q.add_columns(pat.name.label("patient_name"), den.name.label("dentist_name"))
        .outerjoin(pat, pat.id == Appointment.patient_id)
        .outerjoin(den, den.id == Appointment.dentist_id)
    )
    out = []
    for r in s.execute(q).all():
        a: Appointment = r.Appointment
        out.append(
            {
                "id": a.id,
                "patient_id": a.patient_id,
                "dentist_id": a.dentist_id,
                "tooth_number": a.tooth_number,
                "procedure_type": a.procedure_type,
                "complexity": a.complexity,
                "health_issues": a.health_issues,
                "appointment_date": a.appointment_date,
                "duration": a.duration,
                "status": a.status,
                "notes": a.notes,
                "converted_to_procedure": a.converted_to_procedure,
                "procedure_id": a.procedure_id,
                "created_at": a.created_at,
                "patient_name": r.patient_name or UNKNOWN_PATIENT,
                "dentist_name": r.dentist_name or UNKNOWN_DENTIST,
            }
        )
    return out


def list_appointments(patient_id: int | None = None, dentist_id: int | None = None) -> list[dict[str, Any]]:
    q = select(Appointment).order_by(Appointment.appointment_date.asc())
    if patient_id is not None:
        q = q.where(Appointment.patient_id == patient_id)
    elif dentist_id is not None:
        q = q.where(Appointment.dentist_id == dentist_id)

    with db_session() as s:
        return _appointments_with_names(s, q)


def upcoming_appointments(limit: int = 5, now: datetime | None = None) -> list[dict[str, Any]]:
    now = now or utcnow()
    q = (
        select(Appointment)
        .where(Appointment.appointment_date >= now)
        .order_by(Appointment.appointment_date.asc())
        .limit(limit)
    )
    with db_session() as s:
        return _appointments_with_names(s, q)


def get_appointment_detail(appointment_id: int) -> dict[str, Any]:
    with db_session() as s:
        rows = _appointments_with_names(s, select(Appointment).where(Appointment.id == appointment_id))
        if not rows:
            raise NotFoundError("Appointment", appointment_id)
        return rows[0]


def create_appointment(data: dict[str, Any]) -> Appointment:
    return _create(Appointment, data)


def update_appointment(appointment_id: int, data: dict[str, Any]) -> Appointment:
    return _update(Appointment, appointment_id, data, "Appointment")


def delete_appointment(appointment_id: int) -> None:
    _delete(Appointment, appointment_id, "Appointment")


def convert_appointment_to_procedure(appointment_id: int) -> Procedure:
    """
    Use case: trasformare un appuntamento in procedura.
    - la procedura nasce con valore 0 e pagamento PENDING (da completare dopo)
    - l'appuntamento viene marcato come convertito
    """
    with db_session() as s:
        app = get_or_raise(s, Appointment, appointment_id, "Appointment")
        if app.converted_to_procedure:
            raise ValueError("Appointment already converted to a procedure.")

        missing = [
            name
            for name, value in (
                ("patientId", app.patient_id),
                ("dentistId", app.dentist_id),
                ("toothNumber", app.tooth_number),
                ("procedureType", app.procedure_type),
            )
            if value is None
        ]
        if missing:
            raise ValueError(f"Appointment is missing data required for a procedure: {', '.join(missing)}.")

        proc = Procedure(
            patient_id=app.patient_id,
            dentist_id=app.dentist_id,
            tooth_number=app.tooth_number,
            procedure_type=app.procedure_type,
            complexity=app.complexity,
            value=0,
            payment_method=PaymentMethod.PENDING,
            payment_status=PaymentStatus.PENDING,
            procedure_date=utcnow().date(),
            notes=app.notes,
        )
        s.add(proc)
        s.flush()

        app.converted_to_procedure = True
        app.procedure_id = proc.id

        logger.info("Appointment %s converted to procedure %s", app.id, proc.id)
        return proc
