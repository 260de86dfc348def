"""SQLAlchemy engine, session factory and declarative base."""

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from accessreg.settings import settings


def build_engine(url: str) -> Engine:
    """Create an engine for *url*.

    SQLite connections are shared across threads (the registry serializes
    access itself); server databases get a connection pool.
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
    )


engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base: Any = declarative_base()


def init_db(bind: Engine | None = None) -> None:
    """Create every registry table that does not exist yet."""
    # Import for side effect: registers the models on ``Base.metadata``.
    import accessreg.core.models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
