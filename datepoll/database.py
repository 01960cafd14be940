from __future__ import annotations

import os
from contextlib import contextmanager
from functools import lru_cache
from typing import Generator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from .config import settings


def _is_sqlite(database_url: str) -> bool:
    return database_url.startswith("sqlite")


def _is_postgres(database_url: str) -> bool:
    return database_url.startswith("postgresql")


def _ensure_sqlite_dir(database_url: str) -> None:
    """
    Ensure the parent folder exists for SQLite file-based DB URLs like:
      sqlite:///./data/datepoll.sqlite
      sqlite:////absolute/path/to/db.sqlite
    """
    if not database_url.startswith("sqlite:///"):
        return

    path = database_url.replace("sqlite:///", "", 1)
    folder = os.path.dirname(path)
    if folder:
        os.makedirs(folder, exist_ok=True)


def _sqlite_pragmas(engine: Engine) -> None:
    """
    Pragmas that make SQLite usable for concurrent requests.
    """

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragmas(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL;")  # readers don't block the writer
        cursor.execute("PRAGMA synchronous=NORMAL;")
        cursor.execute("PRAGMA foreign_keys=ON;")
        cursor.execute("PRAGMA busy_timeout=5000;")  # wait for the write lock instead of failing
        cursor.close()


def _postgres_session_settings(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_postgres_settings(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        # Store timeouts surface as OperationalError and are retried as transient
        cursor.execute("SET statement_timeout = 30000;")
        cursor.close()


def build_engine(database_url: str) -> Engine:
    """
    Create a SQLAlchemy engine for any supported URL.

    - SQLite gets pragmas + check_same_thread=False (requests run in a threadpool)
    - Postgres works by just changing DATABASE_URL
    """
    if _is_sqlite(database_url):
        _ensure_sqlite_dir(database_url)

    connect_args = {"check_same_thread": False} if _is_sqlite(database_url) else {}

    engine = create_engine(
        database_url,
        echo=False,
        connect_args=connect_args,
        pool_pre_ping=True,
    )

    if _is_sqlite(database_url):
        _sqlite_pragmas(engine)

    if _is_postgres(database_url):
        _postgres_session_settings(engine)

    return engine


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """
    Single, shared engine for the app process (settings.resolved_database_url).
    """
    return build_engine(settings.resolved_database_url)


def register_models() -> None:
    """
    Central place to import ALL models so SQLModel registers them.
    """
    from .models.voter import Voter  # noqa: F401
    from .models.submission import AvailableDate, VoteSubmission  # noqa: F401
    from .models.site_config import HeaderText, VotingWindow  # noqa: F401


def init_db(engine: Optional[Engine] = None, create_tables: bool = True) -> None:
    """
    Register models, then create missing tables.
    Non-destructive: create_all will not drop or alter existing tables.
    """
    register_models()
    if create_tables:
        SQLModel.metadata.create_all(engine or get_engine())


@contextmanager
def read_scope(engine: Engine) -> Generator[Session, None, None]:
    """
    Session for read-only work: one consistent snapshot of committed data
    for every statement in the block. Rolled back on close.
    """
    with Session(engine) as session:
        if engine.dialect.name == "sqlite":
            session.connection().exec_driver_sql("BEGIN")
        else:
            session.connection(execution_options={"isolation_level": "REPEATABLE READ"})
        yield session


@contextmanager
def write_scope(engine: Engine) -> Generator[Session, None, None]:
    """
    Serializing write transaction with commit/rollback safety.

    On SQLite the database write lock is taken before the first read
    (BEGIN IMMEDIATE), so anything read inside the block stays current
    until commit. Other backends lock the rows they read with
    SELECT ... FOR UPDATE in the caller.

    Usage:
        with write_scope(engine) as db:
            db.add(...)
    """
    session = Session(engine)
    try:
        if engine.dialect.name == "sqlite":
            session.connection().exec_driver_sql("BEGIN IMMEDIATE")
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
