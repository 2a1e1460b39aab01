from __future__ import annotations

import logging
import random
from datetime import date, datetime, time, timedelta

from sqlalchemy import delete, select

from .db import db_session, init_db
from .models import (
    Appointment,
    AppointmentStatus,
    Complexity,
    Dentist,
    FinancialGoal,
    GoalDifficulty,
    GoalFrequency,
    GoalType,
    Invoice,
    Patient,
    PaymentMethod,
    PaymentStatus,
    Procedure,
    ProcedureType,
)

logger = logging.getLogger(__name__)


# =========================
# Config generazione
# =========================
RANDOM_SEED = 42
DAYS_BACK = 90

PATIENTS_COUNT = 80
DENTISTS = [
    ("Dra. Beatriz Lima", "Clínica Lima"),
    ("Dr. Rafael Costa", "Costa Odontologia"),
    ("Dra. Fernanda Rocha", "Sorriso Pleno"),
    ("Dr. Gustavo Alves", "Alves & Filhos"),
    ("Clínica Dente Feliz", "Dente Feliz"),
]

# Valore base per tipo (poi moltiplicato per la complessità)
BASE_VALUE = {
    ProcedureType.TREATMENT: 600.0,
    ProcedureType.RETREATMENT: 850.0,
    ProcedureType.INSTRUMENT_REMOVAL: 450.0,
    ProcedureType.OTHER: 250.0,
}
TYPE_WEIGHTS = {
    ProcedureType.TREATMENT: 6,
    ProcedureType.RETREATMENT: 3,
    ProcedureType.INSTRUMENT_REMOVAL: 1,
    ProcedureType.OTHER: 1,
}
COMPLEXITY_FACTOR = {
    Complexity.STANDARD: 1.0,
    Complexity.MODERATE: 1.2,
    Complexity.HIGH: 1.45,
    Complexity.EXTREME: 1.8,
}

# Procedure al giorno per giorno della settimana (0=lun...6=dom)
DAILY_LOAD = {0: 5, 1: 4, 2: 4, 3: 4, 4: 5, 5: 2, 6: 0}

# Denti permanenti in notazione FDI (quadranti 1-4, denti 1-8)
PERMANENT_TEETH = [q * 10 + n for q in range(1, 5) for n in range(1, 9)]


def _random_phone() -> str:
    return f"11{random.randint(90000, 99999)}{random.randint(1000, 9999)}"


def _random_email(name: str) -> str:
    domains = ["gmail.com", "outlook.com", "uol.com.br", "hotmail.com"]
    local = name.lower().replace(" ", ".")
    return f"{local}{random.randint(1, 999)}@{random.choice(domains)}"


def _weighted_type() -> ProcedureType:
    types = list(TYPE_WEIGHTS)
    return random.choices(types, weights=[TYPE_WEIGHTS[t] for t in types], k=1)[0]


def _payment_for_date(day: date) -> tuple[PaymentStatus, PaymentMethod, date | None]:
    """Procedure vecchie quasi sempre pagate, quelle recenti spesso ancora in attesa."""
    age = (date.today() - day).days
    paid_probability = 0.95 if age > 30 else 0.6 if age > 7 else 0.3
    if random.random() < paid_probability:
        method = random.choice([PaymentMethod.PIX, PaymentMethod.BANK_TRANSFER, PaymentMethod.CASH, PaymentMethod.CHECK])
        paid_on = min(date.today(), day + timedelta(days=random.randint(0, 10)))
        return PaymentStatus.PAID, method, paid_on
    return PaymentStatus.PENDING, PaymentMethod.PENDING, None


def reset_demo_data() -> None:
    """Cancella i dati operativi (mantiene schema, utenti, conquiste e materiali)."""
    with db_session() as s:
        # Ordine importante per i vincoli FK
        s.execute(delete(Invoice))
        s.execute(delete(Appointment))
        s.execute(delete(Procedure))
        s.execute(delete(FinancialGoal))
        s.execute(delete(Patient))
        s.execute(delete(Dentist))


def seed_dentists() -> None:
    with db_session() as s:
        for name, clinic in DENTISTS:
            exists = s.execute(select(Dentist).where(Dentist.name == name)).scalar_one_or_none()
            if not exists:
                s.add(Dentist(name=name, clinic=clinic, phone=_random_phone(), email=_random_email(name)))


def seed_patients() -> None:
    first_names = [
        "Ana", "Bruno", "Camila", "Diego", "Eduarda", "Felipe", "Gabriela", "Henrique",
        "Isabela", "João", "Larissa", "Mateus", "Natália", "Otávio", "Paula", "Rodrigo",
    ]
    last_names = [
        "Silva", "Santos", "Oliveira", "Souza", "Pereira", "Lima", "Carvalho", "Ferreira",
        "Ribeiro", "Almeida", "Gomes", "Martins", "Barbosa", "Rocha",
    ]

    with db_session() as s:
        dentists = list(s.scalars(select(Dentist)).all())
        for _ in range(PATIENTS_COUNT):
            name = f"{random.choice(first_names)} {random.choice(last_names)}"
            # distribuiti sugli ultimi 90 giorni per alimentare le metriche NEW_PATIENTS
            created = datetime.combine(
                date.today() - timedelta(days=random.randint(0, DAYS_BACK)),
                time(random.randint(8, 18), random.randint(0, 59)),
            )
            s.add(
                Patient(
                    name=name,
                    dentist_id=random.choice(dentists).id if dentists else None,
                    phone=_random_phone(),
                    email=_random_email(name),
                    created_at=created,
                )
            )


def generate_procedures_last_90_days() -> int:
    start_day = date.today() - timedelta(days=DAYS_BACK)
    created = 0

    with db_session() as s:
        dentists = list(s.scalars(select(Dentist).where(Dentist.is_active.is_(True))).all())
        patients = list(s.scalars(select(Patient)).all())
        if not dentists or not patients:
            raise RuntimeError("Missing base data (dentists/patients). Run seed_dentists + seed_patients first.")

        day = start_day
        while day <= date.today():
            load = DAILY_LOAD.get(day.weekday(), 0)
            count = max(0, load + random.randint(-2, 2)) if load else 0

            for _ in range(count):
                ptype = _weighted_type()
                complexity = random.choices(list(COMPLEXITY_FACTOR), weights=[5, 3, 2, 1], k=1)[0]
                value = round(BASE_VALUE[ptype] * COMPLEXITY_FACTOR[complexity] * random.uniform(0.9, 1.15), 2)
                status, method, paid_on = _payment_for_date(day)

                patient = random.choice(patients)
                dentist_id = patient.dentist_id or random.choice(dentists).id

                proc = Procedure(
                    patient_id=patient.id,
                    dentist_id=dentist_id,
                    tooth_number=random.choice(PERMANENT_TEETH),
                    procedure_type=ptype,
                    complexity=complexity,
                    diagnosis=random.choice([None, "Pulpite irreversível", "Necrose pulpar", "Periodontite apical"]),
                    value=value,
                    payment_method=method,
                    payment_status=status,
                    payment_date=paid_on,
                    procedure_date=day,
                )
                s.add(proc)
                s.flush()
                created += 1

                # circa 70% delle procedure pagate ha già la fattura
                if status == PaymentStatus.PAID and random.random() < 0.7:
                    s.add(
                        Invoice(
                            procedure_id=proc.id,
                            invoice_number=f"NF-{day:%Y%m}-{proc.id:05d}",
                            invoice_value=value,
                            invoice_date=paid_on,
                            is_issued=True,
                        )
                    )

            day += timedelta(days=1)

    return created


def generate_upcoming_appointments(days_ahead: int = 14) -> int:
    created = 0
    with db_session() as s:
        dentists = list(s.scalars(select(Dentist).where(Dentist.is_active.is_(True))).all())
        patients = list(s.scalars(select(Patient)).all())

        for offset in range(1, days_ahead + 1):
            day = date.today() + timedelta(days=offset)
            if day.weekday() == 6:
                continue
            for _ in range(random.randint(1, 3)):
                patient = random.choice(patients)
                s.add(
                    Appointment(
                        patient_id=patient.id,
                        dentist_id=patient.dentist_id or random.choice(dentists).id,
                        tooth_number=random.choice(PERMANENT_TEETH),
                        procedure_type=_weighted_type(),
                        appointment_date=datetime.combine(day, time(random.choice([8, 9, 10, 14, 15, 16]), 0)),
                        duration=random.choice([60, 90, 120]),
                        status=AppointmentStatus.SCHEDULED,
                    )
                )
                created += 1
    return created


def seed_demo_goals() -> None:
    """Due metriche sul mese corrente, così la dashboard obiettivi non è vuota."""
    first = date.today().replace(day=1)
    next_month = (first + timedelta(days=32)).replace(day=1)
    last = next_month - timedelta(days=1)

    with db_session() as s:
        s.add(
            FinancialGoal(
                title="Monthly revenue",
                goal_type=GoalType.REVENUE,
                target_value=30000,
                start_date=first,
                end_date=last,
                frequency=GoalFrequency.MONTHLY,
                difficulty=GoalDifficulty.MEDIUM,
            )
        )
        s.add(
            FinancialGoal(
                title="Retreatments this month",
                goal_type=GoalType.SPECIFIC_PROCEDURE,
                procedure_type=ProcedureType.RETREATMENT,
                target_value=20,
                start_date=first,
                end_date=last,
                frequency=GoalFrequency.MONTHLY,
                difficulty=GoalDifficulty.HARD,
            )
        )


def main(reset: bool = True) -> dict[str, int]:
    random.seed(RANDOM_SEED)

    init_db()

    if reset:
        reset_demo_data()

    seed_dentists()
    seed_patients()
    procedures = generate_procedures_last_90_days()
    appointments = generate_upcoming_appointments()
    seed_demo_goals()

    logger.info("Demo data: %d procedures, %d upcoming appointments", procedures, appointments)
    return {"procedures": procedures, "appointments": appointments}


if __name__ == "__main__":
    main(reset=True)
    print("OK: database populated with the last 90 days of demo data.")
