from __future__ import annotations

from sqlalchemy import select

from .db import db_session
from .models import Achievement, Dentist, Material, Patient, ProcedureMaterial


def seed_base() -> None:
    """
    Popola dati minimi (idempotente):
    - dentisti invianti
    - pazienti di esempio
    - conquiste iniziali
    - materiali e legami per tipo di procedura
    """
    with db_session() as s:
        # Dentisti
        dentisti = [
            ("Dra. Amanda Oliveira", "Clínica Oral", "11987654321", "amanda@clinicaoral.com.br"),
            ("Dr. Carlos Mendes", "Odonto Smile", "11976543210", "carlos@odontosmile.com.br"),
            ("Clínica Sorridentes", "Sorridentes", "11965432109", "contato@sorridentes.com.br"),
        ]
        for name, clinic, phone, email in dentisti:
            if s.execute(select(Dentist).where(Dentist.name == name)).scalar_one_or_none() is None:
                s.add(Dentist(name=name, clinic=clinic, phone=phone, email=email))

        s.flush()

        # Pazienti (uno per dentista)
        pazienti = [
            ("João Silva", "Dra. Amanda Oliveira"),
            ("Maria Souza", "Dr. Carlos Mendes"),
            ("Antônio Pereira", "Clínica Sorridentes"),
        ]
        for name, dentist_name in pazienti:
            if s.execute(select(Patient).where(Patient.name == name)).scalar_one_or_none() is None:
                dentist = s.execute(select(Dentist).where(Dentist.name == dentist_name)).scalar_one()
                s.add(Patient(name=name, dentist_id=dentist.id))

        # Conquiste
        conquiste = [
            ("First Treatment", "Log the first endodontic treatment.", 10, "clinical"),
            ("First Goal", "Complete a financial goal.", 20, "financial"),
            ("Full Month", "Reach the monthly revenue goal.", 50, "financial"),
            ("Stock Keeper", "Keep every material above its minimum stock for a month.", 15, "operational"),
        ]
        for title, description, points, kind in conquiste:
            if s.execute(select(Achievement).where(Achievement.title == title)).scalar_one_or_none() is None:
                s.add(Achievement(title=title, description=description, point_value=points, achievement_type=kind))

        # Materiali
        materiali = [
            ("Reciprocating file R25", "box", 180.0, 6, 2),
            ("Gutta-percha points", "box", 45.0, 10, 4),
            ("Endodontic sealer", "unit", 120.0, 3, 2),
            ("Sodium hypochlorite 2.5%", "unit", 12.0, 8, 5),
        ]
        for name, unit, price, stock, minimum in materiali:
            if s.execute(select(Material).where(Material.name == name)).scalar_one_or_none() is None:
                s.add(Material(name=name, unit=unit, unit_price=price, stock_quantity=stock, minimum_stock=minimum))

        s.flush()

        # Materiali per tipo di procedura (semplice esempio)
        def link(procedure_type: str, material_name: str, quantity: float) -> None:
            material = s.execute(select(Material).where(Material.name == material_name)).scalar_one()
            if s.execute(
                select(ProcedureMaterial).where(
                    ProcedureMaterial.procedure_type == procedure_type,
                    ProcedureMaterial.material_id == material.id,
                )
            ).scalar_one_or_none() is None:
                s.add(ProcedureMaterial(procedure_type=procedure_type, material_id=material.id, quantity_used=quantity))

        link("TREATMENT", "Reciprocating file R25", 0.25)
        link("TREATMENT", "Gutta-percha points", 0.1)
        link("TREATMENT", "Endodontic sealer", 0.05)
        link("TREATMENT", "Sodium hypochlorite 2.5%", 0.2)
        link("RETREATMENT", "Reciprocating file R25", 0.5)
        link("RETREATMENT", "Endodontic sealer", 0.05)
