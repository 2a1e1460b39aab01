from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select

from .db import db_session
from .models import Achievement, UserAchievement, utcnow
from .services import apply_changes, get_or_raise

logger = logging.getLogger(__name__)


# =========================
# CRUD
# =========================
def list_achievements() -> list[Achievement]:
    with db_session() as s:
        return list(s.scalars(select(Achievement).order_by(Achievement.id)))


def get_achievement(achievement_id: int) -> Achievement:
    with db_session() as s:
        return get_or_raise(s, Achievement, achievement_id, "Achievement")


def create_achievement(data: dict[str, Any]) -> Achievement:
    with db_session() as s:
        a = Achievement(**data)
        s.add(a)
        s.flush()
        return a


def update_achievement(achievement_id: int, data: dict[str, Any]) -> Achievement:
    with db_session() as s:
        a = get_or_raise(s, Achievement, achievement_id, "Achievement")
        apply_changes(a, data)
        s.flush()
        return a


def delete_achievement(achievement_id: int) -> None:
    with db_session() as s:
        s.delete(get_or_raise(s, Achievement, achievement_id, "Achievement"))


# =========================
# Assegnazione
# =========================
def is_awarded(achievement_id: int) -> bool:
    with db_session() as s:
        q = select(UserAchievement.id).where(UserAchievement.achievement_id == achievement_id).limit(1)
        return s.execute(q).first() is not None


def award_achievement(achievement_id: int, now: datetime | None = None) -> bool:
    """
    Use case: assegnare una conquista (utente unico implicito).
    - False se la conquista non esiste
    - False se è già stata assegnata (nessun duplicato)
    - altrimenti registra earned_date e ritorna True
    """
    with db_session() as s:
        if s.get(Achievement, achievement_id) is None:
            return False

        already = s.execute(
            select(UserAchievement.id).where(UserAchievement.achievement_id == achievement_id).limit(1)
        ).first()
        if already is not None:
            return False

        s.add(UserAchievement(achievement_id=achievement_id, earned_date=now or utcnow()))
        logger.info("Achievement %s awarded", achievement_id)
        return True


def user_achievements() -> list[dict[str, Any]]:
    """Conquiste ottenute, ciascuna con la propria earned_date (più recenti prima)."""
    with db_session() as s:
        rows = s.execute(
            select(Achievement, UserAchievement.earned_date)
            .join(UserAchievement, UserAchievement.achievement_id == Achievement.id)
            .order_by(UserAchievement.earned_date.desc())
        ).all()
        return [
            {
                "id": r.Achievement.id,
                "title": r.Achievement.title,
                "description": r.Achievement.description,
                "point_value": r.Achievement.point_value,
                "achievement_type": r.Achievement.achievement_type,
                "image_url": r.Achievement.image_url,
                "created_at": r.Achievement.created_at,
                "earned_date": r.earned_date,
            }
            for r in rows
        ]
