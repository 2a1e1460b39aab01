from __future__ import annotations

from collections import Counter
from datetime import date, timedelta
from typing import Any

from sqlalchemy import select

from .db import db_session
from .models import Dentist, Invoice, Patient, PaymentStatus, Procedure, ProcedureType
from .services import list_procedures, procedure_to_dict

REPORT_PERIODS = ("month", "quarter", "year")


# =========================
# Helper date
# =========================
def _month_start(d: date) -> date:
    return d.replace(day=1)


def _shift_month(d: date, months: int) -> date:
    """Primo giorno del mese spostato di `months` (anche negativo)."""
    idx = d.year * 12 + (d.month - 1) + months
    return date(idx // 12, idx % 12 + 1, 1)


def _month_end(d: date) -> date:
    return _shift_month(d, 1) - timedelta(days=1)


def _pct_change(current: float, previous: float) -> float:
    return ((current - previous) / previous) * 100 if previous else 0.0


def _shares(counter: Counter, total: int, key: str) -> list[dict[str, Any]]:
    return [
        {key: name, "count": count, "percentage": (count / total) * 100 if total else 0.0}
        for name, count in counter.most_common()
    ]


def _enum_label(value: Any) -> str:
    if value is None:
        return "UNKNOWN"
    return getattr(value, "value", str(value))


# =========================
# Statistiche dashboard
# =========================
def procedure_stats(today: date | None = None) -> dict[str, Any]:
    """
    Statistiche aggregate per la dashboard: un passaggio lineare sulle procedure.
    """
    today = today or date.today()
    first_of_month = _month_start(today)
    prev_start = _shift_month(today, -1)
    prev_end = first_of_month - timedelta(days=1)

    with db_session() as s:
        procedures = list(s.scalars(select(Procedure)))
        dentists = {d.id: d for d in s.scalars(select(Dentist))}

    total = len(procedures)
    total_revenue = sum(p.value for p in procedures)

    monthly = [p for p in procedures if p.procedure_date >= first_of_month]
    previous = [p for p in procedures if prev_start <= p.procedure_date <= prev_end]
    monthly_revenue = sum(p.value for p in monthly)
    previous_revenue = sum(p.value for p in previous)

    pending = [p for p in procedures if p.payment_status == PaymentStatus.PENDING]

    by_type = Counter(_enum_label(p.procedure_type) for p in procedures)
    by_complexity = Counter(_enum_label(p.complexity) for p in procedures)

    perf: dict[int, dict[str, Any]] = {}
    for p in procedures:
        entry = perf.setdefault(p.dentist_id, {"procedure_count": 0, "revenue": 0.0})
        entry["procedure_count"] += 1
        entry["revenue"] += p.value
    dentist_performance = sorted(
        (
            {
                "dentist_id": dentist_id,
                "dentist_name": dentists[dentist_id].name if dentist_id in dentists else "Unknown",
                **data,
            }
            for dentist_id, data in perf.items()
        ),
        key=lambda row: row["revenue"],
        reverse=True,
    )

    # ultimi 6 mesi, dal più vecchio al corrente
    revenue_by_month = []
    for offset in range(5, -1, -1):
        m_start = _shift_month(today, -offset)
        m_end = _month_end(m_start)
        revenue_by_month.append(
            {
                "month": m_start.strftime("%Y-%m"),
                "revenue": sum(p.value for p in procedures if m_start <= p.procedure_date <= m_end),
            }
        )

    return {
        "total_procedures": total,
        "monthly_procedures": len(monthly),
        "total_revenue": total_revenue,
        "monthly_revenue": monthly_revenue,
        "active_dentists": sum(1 for d in dentists.values() if d.is_active),
        "pending_payments": len(pending),
        "pending_payments_value": sum(p.value for p in pending),
        "procedures_by_type": _shares(by_type, total, "type"),
        "procedures_by_complexity": _shares(by_complexity, total, "complexity"),
        "dentist_performance": dentist_performance,
        "revenue_by_month": revenue_by_month,
        "total_treatments": by_type.get(ProcedureType.TREATMENT.value, 0),
        "total_retreatments": by_type.get(ProcedureType.RETREATMENT.value, 0),
        "average_value": total_revenue / total if total else 0.0,
        "monthly_comparison": [
            {
                "current_month": len(monthly),
                "previous_month": len(previous),
                "percentage_change": _pct_change(len(monthly), len(previous)),
            },
            {
                "current_month": monthly_revenue,
                "previous_month": previous_revenue,
                "percentage_change": _pct_change(monthly_revenue, previous_revenue),
            },
        ],
    }


def recent_procedures(limit: int = 5) -> list[dict[str, Any]]:
    # list_procedures è già ordinata per data decrescente
    return list_procedures()[:limit]


def _totals_by_dentist(procedures: list[Procedure], dentists: dict[int, Dentist]) -> list[dict[str, Any]]:
    grouped: dict[int, dict[str, Any]] = {}
    for p in procedures:
        dentist = dentists.get(p.dentist_id)
        if dentist is None:
            continue
        entry = grouped.setdefault(p.dentist_id, {"dentist": dentist.name, "count": 0, "total": 0.0})
        entry["count"] += 1
        entry["total"] += p.value
    return list(grouped.values())


def pending_payments_by_dentist() -> list[dict[str, Any]]:
    """Procedure con pagamento PENDING raggruppate per dentista."""
    with db_session() as s:
        procedures = list(
            s.scalars(
                select(Procedure)
                .where(Procedure.payment_status == PaymentStatus.PENDING)
                .order_by(Procedure.procedure_date.desc())
            )
        )
        dentists = {d.id: d for d in s.scalars(select(Dentist))}
    return _totals_by_dentist(procedures, dentists)


def pending_invoices_by_dentist() -> list[dict[str, Any]]:
    """Procedure già pagate ma senza alcuna fattura, raggruppate per dentista."""
    with db_session() as s:
        invoiced = select(Invoice.procedure_id)
        procedures = list(
            s.scalars(
                select(Procedure)
                .where(Procedure.payment_status == PaymentStatus.PAID, Procedure.id.not_in(invoiced))
                .order_by(Procedure.procedure_date.desc())
            )
        )
        dentists = {d.id: d for d in s.scalars(select(Dentist))}
    return _totals_by_dentist(procedures, dentists)


# =========================
# Report per dentista
# =========================
def resolve_period(
    period: str | None,
    start_date: date | None,
    end_date: date | None,
    today: date | None = None,
) -> tuple[date | None, date | None]:
    """`period` (month/quarter/year) ha precedenza sulle date esplicite."""
    today = today or date.today()
    if period is None:
        return start_date, end_date
    if period == "month":
        return _month_start(today), today
    if period == "quarter":
        quarter_month = ((today.month - 1) // 3) * 3 + 1
        return date(today.year, quarter_month, 1), today
    if period == "year":
        return date(today.year, 1, 1), today
    raise ValueError(f"Unknown period '{period}'. Use one of: {', '.join(REPORT_PERIODS)}.")


def dentist_procedure_report(
    period: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    dentist_id: int | None = None,
    today: date | None = None,
) -> list[dict[str, Any]]:
    start, end = resolve_period(period, start_date, end_date, today)

    q = (
        select(Procedure, Patient.name)
        .outerjoin(Patient, Patient.id == Procedure.patient_id)
        .order_by(Procedure.procedure_date.asc(), Procedure.id.asc())
    )
    if start is not None:
        q = q.where(Procedure.procedure_date >= start)
    if end is not None:
        q = q.where(Procedure.procedure_date <= end)
    if dentist_id is not None:
        q = q.where(Procedure.dentist_id == dentist_id)

    with db_session() as s:
        rows = s.execute(q).all()
        dentists = {d.id: d for d in s.scalars(select(Dentist))}

    report: dict[int, dict[str, Any]] = {}
    for p, patient_name in rows:
        dentist = dentists.get(p.dentist_id)
        if dentist is None:
            continue
        entry = report.setdefault(
            p.dentist_id,
            {
                "dentist_id": p.dentist_id,
                "name": dentist.name,
                "total_procedures": 0,
                "treatment_count": 0,
                "retreatment_count": 0,
                "total_value": 0.0,
                "average_value": 0.0,
                "procedures": [],
            },
        )
        entry["total_procedures"] += 1
        if p.procedure_type == ProcedureType.TREATMENT:
            entry["treatment_count"] += 1
        elif p.procedure_type == ProcedureType.RETREATMENT:
            entry["retreatment_count"] += 1
        entry["total_value"] += p.value
        entry["procedures"].append(procedure_to_dict(p, patient_name, dentist.name))

    for entry in report.values():
        entry["average_value"] = round(entry["total_value"] / entry["total_procedures"], 2)

    return sorted(report.values(), key=lambda e: e["total_procedures"], reverse=True)
