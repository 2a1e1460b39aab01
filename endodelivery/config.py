from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

PROJECT_ROOT = Path(__file__).resolve().parents[1]

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    database_url: str | None
    use_sqlite: bool
    sqlite_path: str
    sql_echo: bool
    jwt_secret: str
    jwt_expire_minutes: int
    log_level: str
    backup_dir: Path

    @property
    def uses_sqlite(self) -> bool:
        """SQLite se forzato con USE_SQLITE oppure se manca DATABASE_URL."""
        return self.use_sqlite or not self.database_url

    @property
    def effective_database_url(self) -> str:
        if not self.uses_sqlite:
            url = self.database_url or ""
            # alcuni provider esportano ancora lo schema "postgres://"
            if url.startswith("postgres://"):
                url = "postgresql://" + url[len("postgres://"):]
            return url
        if self.sqlite_path == ":memory:":
            return "sqlite://"
        return f"sqlite:///{self.sqlite_path}"


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        use_sqlite=_env_bool("USE_SQLITE"),
        sqlite_path=os.getenv("SQLITE_PATH", str(PROJECT_ROOT / "endodelivery.sqlite")),
        sql_echo=_env_bool("SQL_ECHO"),
        # In produzione: mettila in variabile d'ambiente
        jwt_secret=os.getenv("JWT_SECRET", "CHANGE_ME_DEV_SECRET"),
        jwt_expire_minutes=int(os.getenv("JWT_EXPIRE_MINUTES", "60")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        backup_dir=Path(os.getenv("BACKUP_DIR", str(PROJECT_ROOT / "backups"))),
    )


settings = load_settings()


def configure_logging(level: str | None = None) -> None:
    """Configura il logging root una sola volta (no-op se ci sono già handler)."""
    logging.basicConfig(level=(level or settings.log_level).upper(), format=LOG_FORMAT)
