from __future__ import annotations

import logging
import platform
import time
from datetime import datetime, timedelta
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api_deps import get_current_user
from .auth_models import User
from .auth_security import create_access_token
from .auth_service import authenticate, create_user
from .config import configure_logging
from .db import db_session, engine, init_db
from .errors import NotFoundError
from .models import utcnow
from .routes import achievements, appointments, dashboard, dentists, goals, invoices, materials, patients, procedures
from .schemas import MeOut, RegisterIn, StatusOut, TokenOut
from .seed import seed_base

configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(title="Endodelivery API", version="1.0.0")

STARTED_AT = utcnow()
_STARTED_MONO = time.monotonic()


# Startup

@app.on_event("startup")
def startup() -> None:
    # Crea tabelle (incluso User) e seed base (idempotente)
    init_db()
    seed_base()
    logger.info("Endodelivery API ready (database: %s)", engine.url.get_backend_name())


# Gestione errori: corpo sempre {"message": ...}

def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": _validation_message(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"message": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request: Request, exc: ValueError):
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": str(exc)})


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": "Data integrity violation"})


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(Exception)
async def unexpected_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": "An unexpected error occurred"},
    )


# AUTH endpoints

@app.post("/api/auth/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterIn) -> dict[str, Any]:
    # ValueError (username già usato) -> 400 tramite handler
    user_id = create_user(payload.username, payload.password)
    return {"ok": True, "userId": user_id}


@app.post("/api/auth/login", response_model=TokenOut)
def login(form: OAuth2PasswordRequestForm = Depends()) -> TokenOut:
    u = authenticate(form.username, form.password)
    if not u:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = create_access_token(u.id, username=u.username, is_admin=u.is_admin)
    return TokenOut(access_token=token)


@app.get("/api/me", response_model=MeOut)
def me(user: User = Depends(get_current_user)) -> MeOut:
    return MeOut.model_validate(user)


# Health

def _format_uptime(seconds: float) -> str:
    return str(timedelta(seconds=int(seconds)))


def _database_state() -> str:
    try:
        with db_session() as s:
            s.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Database health check failed")
        return "unavailable"
    return f"connected ({engine.url.get_backend_name()})"


@app.get("/api/status", response_model=StatusOut)
def api_status() -> StatusOut:
    uptime = time.monotonic() - _STARTED_MONO
    return StatusOut(
        status="online",
        message="Endodelivery API is running",
        uptime=_format_uptime(uptime),
        uptime_raw=uptime,
        started_at=STARTED_AT,
        current_time=datetime.now(),
        database=_database_state(),
        system_info={
            "platform": platform.system(),
            "release": platform.release(),
            "python": platform.python_version(),
            "node": platform.node(),
        },
    )


@app.get("/ping", response_class=PlainTextResponse)
def ping() -> str:
    return "pong"


for _router in (
    patients.router,
    dentists.router,
    procedures.router,
    invoices.router,
    appointments.router,
    dashboard.router,
    goals.router,
    achievements.router,
    materials.router,
):
    app.include_router(_router)
