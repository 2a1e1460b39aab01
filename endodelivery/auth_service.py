from __future__ import annotations

import logging

from sqlalchemy import select

from .auth_models import User
from .auth_security import hash_password, verify_password
from .db import db_session

logger = logging.getLogger(__name__)


def create_user(username: str, password: str, is_admin: bool = False) -> int:
    username = username.strip().lower()
    if not username or not password:
        raise ValueError("Username and password are required.")

    with db_session() as s:
        exists = s.execute(select(User).where(User.username == username)).scalar_one_or_none()
        if exists:
            raise ValueError("Username already registered.")

        u = User(username=username, password_hash=hash_password(password), is_active=True, is_admin=is_admin)
        s.add(u)
        s.flush()
        logger.info("User created: %s (admin=%s)", username, is_admin)
        return u.id


def authenticate(username: str, password: str) -> User | None:
    username = username.strip().lower()
    with db_session() as s:
        u = s.execute(select(User).where(User.username == username)).scalar_one_or_none()
        if not u or not u.is_active:
            return None
        if not verify_password(password, u.password_hash):
            return None
        return u


def get_user_by_id(user_id: int) -> User | None:
    with db_session() as s:
        return s.get(User, user_id)


def delete_user(username: str) -> bool:
    username = username.strip().lower()
    with db_session() as s:
        u = s.execute(select(User).where(User.username == username)).scalar_one_or_none()
        if u is None:
            return False
        s.delete(u)
        return True
