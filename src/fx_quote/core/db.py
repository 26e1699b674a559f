from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker

from fx_quote.core.config import settings

# Pool record key holding the connection's own busy timeout while a deadline guard is installed.
SQLITE_GUARD_KEY = "fx_quote.busy_timeout_ms"


def _clear_sqlite_guard(dbapi_conn, connection_record) -> None:
    busy_timeout_ms = connection_record.info.pop(SQLITE_GUARD_KEY, None)
    if busy_timeout_ms is None or dbapi_conn is None:
        return
    dbapi_conn.set_progress_handler(None, 0)
    dbapi_conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")


def make_engine(database_url: str) -> Engine:
    url = make_url(database_url)
    connect_args: dict = {}
    if url.drivername.startswith("sqlite"):
        connect_args = {"check_same_thread": False}
    engine = create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)
    if url.drivername.startswith("sqlite"):
        event.listen(engine, "checkin", _clear_sqlite_guard)
    return engine


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def db_session() -> Generator[Session, None, None]:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
