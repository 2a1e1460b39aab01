"""
Metriche finanziarie: aggregazioni e valutazione del progresso.

Le funzioni di aggregazione sono pure (solo SELECT) e restituiscono 0 se la
finestra è vuota o nessuna riga corrisponde. Il valutatore ricalcola ogni
metrica attiva e non completata e marca il completamento una sola volta.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Any

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from .db import db_session
from .models import FinancialGoal, GoalType, Patient, Procedure, ProcedureType, utcnow
from .services import apply_changes, get_or_raise

logger = logging.getLogger(__name__)


# =========================
# Helper / DTO
# =========================
@dataclass(frozen=True)
class GoalCheckResult:
    updated_goals: int
    completed_goals: int


@dataclass(frozen=True)
class _GoalOutcome:
    updated: bool
    completed: bool


# =========================
# Aggregazioni
# =========================
def _procedure_filters(
    start_date: date,
    end_date: date,
    dentist_id: int | None,
    procedure_type: ProcedureType | None,
) -> list:
    conditions = [Procedure.procedure_date >= start_date, Procedure.procedure_date <= end_date]
    if dentist_id is not None:
        conditions.append(Procedure.dentist_id == dentist_id)
    if procedure_type is not None:
        conditions.append(Procedure.procedure_type == procedure_type)
    return conditions


def revenue_in_window(
    s: Session,
    start_date: date,
    end_date: date,
    dentist_id: int | None = None,
    procedure_type: ProcedureType | None = None,
) -> float:
    """Somma di Procedure.value con procedure_date in [start_date, end_date]."""
    q = select(func.coalesce(func.sum(Procedure.value), 0)).where(
        and_(*_procedure_filters(start_date, end_date, dentist_id, procedure_type))
    )
    return float(s.execute(q).scalar_one())


def procedure_count_in_window(
    s: Session,
    start_date: date,
    end_date: date,
    dentist_id: int | None = None,
    procedure_type: ProcedureType | None = None,
) -> int:
    q = select(func.count(Procedure.id)).where(
        and_(*_procedure_filters(start_date, end_date, dentist_id, procedure_type))
    )
    return int(s.execute(q).scalar_one())


def new_patient_count_in_window(s: Session, start_date: date, end_date: date) -> int:
    # created_at è un timestamp: l'ultimo giorno è incluso per intero
    window_start = datetime.combine(start_date, time.min)
    window_end = datetime.combine(end_date + timedelta(days=1), time.min)
    q = select(func.count(Patient.id)).where(
        and_(Patient.created_at >= window_start, Patient.created_at < window_end)
    )
    return int(s.execute(q).scalar_one())


def goal_is_evaluable(goal: FinancialGoal) -> bool:
    """I tipi SPECIFIC_* senza filtro non sono valutabili (vengono saltati)."""
    if goal.goal_type == GoalType.SPECIFIC_DENTIST:
        return goal.dentist_id is not None
    if goal.goal_type == GoalType.SPECIFIC_PROCEDURE:
        return goal.procedure_type is not None
    return True


def compute_goal_value(s: Session, goal: FinancialGoal) -> float:
    """Valore corrente della metrica sulla finestra [start_date, end_date] del goal."""
    if not goal_is_evaluable(goal):
        raise ValueError(f"Goal {goal.id} of type {goal.goal_type.value} lacks its required filter.")
    if not isinstance(goal.start_date, date) or not isinstance(goal.end_date, date):
        raise ValueError(f"Goal {goal.id} has a malformed date window.")

    gt = goal.goal_type
    if gt == GoalType.REVENUE:
        return revenue_in_window(s, goal.start_date, goal.end_date, goal.dentist_id, goal.procedure_type)
    if gt == GoalType.PROCEDURE_COUNT:
        return procedure_count_in_window(s, goal.start_date, goal.end_date, goal.dentist_id, goal.procedure_type)
    if gt == GoalType.NEW_PATIENTS:
        return new_patient_count_in_window(s, goal.start_date, goal.end_date)
    if gt == GoalType.SPECIFIC_DENTIST:
        return revenue_in_window(s, goal.start_date, goal.end_date, goal.dentist_id, goal.procedure_type)
    if gt == GoalType.SPECIFIC_PROCEDURE:
        return procedure_count_in_window(s, goal.start_date, goal.end_date, goal.dentist_id, goal.procedure_type)
    raise ValueError(f"Unsupported goal type: {gt!r}")


# =========================
# Transizioni di stato
# =========================
def _set_progress(goal: FinancialGoal, new_value: float, now: datetime) -> bool:
    """
    Aggiorna current_value e, se raggiunto il target, completa il goal.
    Ritorna True se questa chiamata ha completato il goal.
    Unica transizione ammessa: is_completed False -> True.
    """
    goal.current_value = new_value
    if new_value >= goal.target_value:
        goal.is_completed = True
        goal.completed_at = now
        return True
    return False


def _evaluate_goal(goal_id: int, now: datetime) -> _GoalOutcome:
    # ogni goal è una scrittura indipendente (sessione propria)
    with db_session() as s:
        goal = s.get(FinancialGoal, goal_id)
        if goal is None or goal.is_completed or not goal.is_active:
            return _GoalOutcome(updated=False, completed=False)

        if not goal_is_evaluable(goal):
            logger.warning("Goal %s (%s) skipped: missing filter", goal.id, goal.goal_type.value)
            return _GoalOutcome(updated=False, completed=False)

        new_value = compute_goal_value(s, goal)
        if new_value == goal.current_value:
            return _GoalOutcome(updated=False, completed=False)

        completed = _set_progress(goal, new_value, now)
        if completed:
            logger.info("Goal %s completed: %s >= %s", goal.id, new_value, goal.target_value)
        return _GoalOutcome(updated=True, completed=completed)


def check_goals_progress(now: datetime | None = None) -> GoalCheckResult:
    """
    Use case: ricalcolare tutte le metriche attive e non completate.
    - salta i goal SPECIFIC_* senza filtro
    - persiste solo se il valore è cambiato
    - un errore su un goal viene loggato e non interrompe il batch
    """
    now = now or utcnow()
    with db_session() as s:
        goal_ids = list(
            s.scalars(
                select(FinancialGoal.id)
                .where(FinancialGoal.is_active.is_(True), FinancialGoal.is_completed.is_(False))
                .order_by(FinancialGoal.id)
            )
        )

    updated = completed = 0
    for goal_id in goal_ids:
        try:
            outcome = _evaluate_goal(goal_id, now)
        except Exception:
            logger.exception("Goal %s evaluation failed, continuing with the next one", goal_id)
            continue
        updated += int(outcome.updated)
        completed += int(outcome.completed)

    logger.info("Goal check: %d evaluated, %d updated, %d completed", len(goal_ids), updated, completed)
    return GoalCheckResult(updated_goals=updated, completed_goals=completed)


def update_goal_progress(goal_id: int, new_value: float, now: datetime | None = None) -> FinancialGoal:
    """
    Aggiornamento manuale con valore assoluto (non delta).
    Un goal già completato viene restituito invariato.
    """
    with db_session() as s:
        goal = get_or_raise(s, FinancialGoal, goal_id, "Financial goal")
        if goal.is_completed:
            return goal

        if _set_progress(goal, new_value, now or utcnow()):
            logger.info("Goal %s completed by manual progress update", goal.id)
        s.flush()
        return goal


# =========================
# CRUD
# =========================
def list_goals() -> list[FinancialGoal]:
    with db_session() as s:
        return list(s.scalars(select(FinancialGoal).order_by(FinancialGoal.end_date, FinancialGoal.id)))


def list_active_goals() -> list[FinancialGoal]:
    with db_session() as s:
        return list(
            s.scalars(
                select(FinancialGoal)
                .where(FinancialGoal.is_active.is_(True))
                .order_by(FinancialGoal.end_date, FinancialGoal.id)
            )
        )


def get_goal(goal_id: int) -> FinancialGoal:
    with db_session() as s:
        return get_or_raise(s, FinancialGoal, goal_id, "Financial goal")


def create_goal(data: dict[str, Any]) -> FinancialGoal:
    with db_session() as s:
        goal = FinancialGoal(**data, current_value=0, is_active=True, is_completed=False, completed_at=None)
        s.add(goal)
        s.flush()
        return goal


_PROTECTED_FIELDS = {"current_value", "is_completed", "completed_at"}
# definiscono la metrica: congelati dopo il completamento
_METRIC_FIELDS = {"goal_type", "target_value", "start_date", "end_date", "dentist_id", "procedure_type"}
_NOT_NULL_FIELDS = {"title", "goal_type", "target_value", "start_date", "end_date", "frequency", "difficulty", "is_active"}


def update_goal(goal_id: int, data: dict[str, Any]) -> FinancialGoal:
    blocked = _PROTECTED_FIELDS.intersection(data)
    if blocked:
        raise ValueError(f"Fields cannot be edited directly: {', '.join(sorted(blocked))}")
    nulls = sorted(k for k in _NOT_NULL_FIELDS.intersection(data) if data[k] is None)
    if nulls:
        raise ValueError(f"Fields cannot be null: {', '.join(nulls)}")

    with db_session() as s:
        goal = get_or_raise(s, FinancialGoal, goal_id, "Financial goal")
        frozen = _METRIC_FIELDS.intersection(data)
        if goal.is_completed and frozen:
            raise ValueError(
                f"Goal {goal.id} is completed: {', '.join(sorted(frozen))} can no longer be changed."
            )
        apply_changes(goal, data)

        if goal.end_date < goal.start_date:
            raise ValueError("endDate must not be before startDate")
        if not goal_is_evaluable(goal):
            raise ValueError(f"{goal.goal_type.value} goals require their filter field.")

        s.flush()
        return goal


def delete_goal(goal_id: int) -> None:
    with db_session() as s:
        s.delete(get_or_raise(s, FinancialGoal, goal_id, "Financial goal"))

