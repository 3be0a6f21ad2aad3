from __future__ import annotations

from typing import Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from tai_report.core.config import settings


def build_engine(url: str, **engine_kwargs: Any) -> Engine:
    """Create an engine; SQLite connections get foreign keys switched on."""
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    engine_kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(url, connect_args=connect_args, **engine_kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
