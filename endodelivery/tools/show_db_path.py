from __future__ import annotations

from endodelivery.config import settings
from endodelivery.db import engine


def main() -> None:
    print("BACKEND   :", engine.url.get_backend_name())
    print("ENGINE URL:", engine.url.render_as_string(hide_password=True))
    if settings.uses_sqlite:
        print("DB FILE   :", engine.url.database or ":memory:")
    print("BACKUP DIR:", settings.backup_dir)


if __name__ == "__main__":
    main()
