# jobportal/db/session.py
from typing import Generator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from jobportal.core.config import settings


def make_engine(db_url: str) -> Engine:
    # SQLite-friendly connect args
    is_sqlite = db_url.startswith("sqlite")
    connect_args = {"check_same_thread": False, "timeout": 30} if is_sqlite else {}
    kwargs = {}
    if is_sqlite and ":memory:" in db_url:
        # one shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool

    eng = create_engine(
        db_url,
        future=True,
        pool_pre_ping=True,
        connect_args=connect_args,
        **kwargs,
    )

    # Enable WAL + sane pragmas for SQLite
    if is_sqlite:
        @event.listens_for(eng, "connect")
        def _set_sqlite_pragmas(dbapi_connection, connection_record):
            cur = dbapi_connection.cursor()
            if ":memory:" not in db_url:
                cur.execute("PRAGMA journal_mode=WAL;")
                cur.execute("PRAGMA synchronous=NORMAL;")
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.close()

    return eng


def make_session_factory(eng: Engine) -> sessionmaker:
    return sessionmaker(
        bind=eng,
        future=True,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


engine = make_engine(settings.DATABASE_URL)
SessionLocal = make_session_factory(engine)


def get_db() -> Generator[Session, None, None]:
    """Request-scoped Session for the API routes; tests override it via ``dependency_overrides``."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
