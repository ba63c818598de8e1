"""Database connectivity helpers."""

from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .models_sql import Base


def get_engine(sqlite_path: str, *, busy_timeout: float = 30) -> Engine:
    """Create a SQLAlchemy engine for the SQLite database."""

    if sqlite_path == ":memory:":
        return create_engine(
            "sqlite://",
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_engine(
        f"sqlite:///{sqlite_path}?timeout={int(busy_timeout)}",
        future=True,
        pool_pre_ping=True,
        connect_args={"check_same_thread": False, "timeout": busy_timeout},
    )


def make_session(engine: Engine) -> sessionmaker[Session]:
    """Create a configured session factory bound to *engine*."""

    return sessionmaker(engine, expire_on_commit=False, future=True)


def init_db_safe(engine: Engine) -> None:
    """Initialise database schema, creating only missing tables."""

    Base.metadata.create_all(engine, checkfirst=True)


init_db = init_db_safe
