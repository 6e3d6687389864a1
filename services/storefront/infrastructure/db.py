from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker


def _engine_options(dsn: str):
    options = {
        "pool_pre_ping": True,
    }
    if dsn.startswith("sqlite"):
        # Request handlers run on a thread pool.
        options["connect_args"] = {"check_same_thread": False, "timeout": 30}
    return options


class Base(DeclarativeBase):
    pass


def create_session_factory(dsn: str):
    """Create the engine, ensure tables for every imported record class exist."""
    engine = create_engine(dsn, **_engine_options(dsn))
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
