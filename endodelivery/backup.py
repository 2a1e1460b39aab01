from __future__ import annotations

import logging
import os
import shutil
import sqlite3
import subprocess
from datetime import datetime
from pathlib import Path

from sqlalchemy.engine import URL

from .config import settings
from .db import engine

logger = logging.getLogger(__name__)


def pg_dump_command(url: URL, target: Path) -> tuple[list[str], dict[str, str]]:
    """
    Argomenti e ambiente per pg_dump.
    La password passa da PGPASSWORD: la riga di comando è visibile in `ps`.
    """
    # pg_dump non accetta il suffisso del driver (postgresql+psycopg2)
    dsn = URL.create(
        "postgresql",
        username=url.username,
        host=url.host,
        port=url.port,
        database=url.database,
        query=url.query,
    ).render_as_string(hide_password=False)
    env = dict(os.environ)
    if url.password:
        env["PGPASSWORD"] = str(url.password)
    return ["pg_dump", "--no-owner", "--file", str(target), dsn], env


def backup_database(target_dir: Path | None = None, now: datetime | None = None) -> Path:
    """
    Copia del database in `target_dir` (default BACKUP_DIR):
    - SQLite: backup online tramite l'API sqlite3 (il DB resta utilizzabile)
    - altri backend: pg_dump in un file .sql
    """
    target_dir = target_dir or settings.backup_dir
    target_dir.mkdir(parents=True, exist_ok=True)
    stamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")

    if engine.url.get_backend_name() == "sqlite":
        source = engine.url.database
        if not source or source == ":memory:":
            raise ValueError("In-memory SQLite databases cannot be backed up.")

        target = target_dir / f"endodelivery-{stamp}.sqlite"
        src = sqlite3.connect(source)
        dst = sqlite3.connect(target)
        try:
            src.backup(dst)
        finally:
            dst.close()
            src.close()
    else:
        if shutil.which("pg_dump") is None:
            raise RuntimeError("pg_dump not found in PATH.")

        target = target_dir / f"endodelivery-{stamp}.sql"
        args, env = pg_dump_command(engine.url, target)
        subprocess.run(args, env=env, check=True)

    logger.info("Database backup written to %s", target)
    return target
