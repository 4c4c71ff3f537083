"""Database engine setup for SQLite-backed data proxies.

SQLAlchemy Core (not ORM) is used: proxies map rows to domain objects
themselves, so there is no need for session management or identity maps.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine


def create_db_engine(target: Path | str) -> Engine:
    """Create an engine with foreign keys enabled on SQLite.

    *target* is either a filesystem path (SQLite file) or a full
    SQLAlchemy URL.
    """
    url = f"sqlite:///{target}" if isinstance(target, Path) else target
    engine = create_engine(url, echo=False)

    if engine.dialect.name == "sqlite":

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_conn: Any, _: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine
