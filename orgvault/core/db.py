"""SQLAlchemy engine and session factory helpers."""
from __future__ import annotations
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """Create an engine, sharing one connection for in-memory SQLite."""
    if database_url.startswith("sqlite") and (":memory:" in database_url or database_url == "sqlite://"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url, echo=echo, connect_args={"check_same_thread": False})
    return create_engine(database_url, echo=echo, pool_pre_ping=True)


def create_session_factory(engine: Engine) -> sessionmaker:
    # Entities are handed back to the API layer after the session closes.
    return sessionmaker(bind=engine, expire_on_commit=False)


def init_db(engine: Engine) -> None:
    """Create all tables (idempotent)."""
    from orgvault.core import models  # noqa: F401  (registers mappers)

    Base.metadata.create_all(engine)
    logger.info("Database schema ensured (%d tables)", len(Base.metadata.tables))
