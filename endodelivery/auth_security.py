"""
Password e token di accesso all'API Endodelivery.

Il token porta solo l'id utente (`sub`) e qualche claim informativo per la
dashboard (username, is_admin). I permessi reali si rileggono sempre dal DB
in api_deps: un utente disattivato o declassato perde l'accesso subito.
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import settings

JWT_ALG = "HS256"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: int, username: str | None = None, is_admin: bool = False) -> str:
    """Token firmato HS256 per l'utente `user_id`, valido JWT_EXPIRE_MINUTES."""
    issued = datetime.now(timezone.utc)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(minutes=settings.jwt_expire_minutes)).timestamp()),
        "adm": bool(is_admin),
    }
    if username:
        claims["username"] = username
    return jwt.encode(claims, settings.jwt_secret, algorithm=JWT_ALG)


def decode_token(token: str) -> dict[str, Any]:
    # firma e scadenza verificate da jose (JWTError se non valido)
    return jwt.decode(token, settings.jwt_secret, algorithms=[JWT_ALG])


def token_user_id(token: str) -> int | None:
    """Id utente dal claim `sub`; None per token scaduti, manomessi o con sub non numerico."""
    try:
        subject = decode_token(token).get("sub")
    except JWTError:
        return None
    if not isinstance(subject, str) or not subject.isdigit():
        return None
    return int(subject)
