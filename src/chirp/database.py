"""Database setup for users and their tweets."""

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import settings

Base = declarative_base()


def make_engine(url: str, **kwargs) -> Engine:
    """Create an engine usable from FastAPI's worker threads."""

    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, future=True, **kwargs)


engine = make_engine(settings.database_url)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def init_db(bind: Engine | None = None) -> None:
    """Create database tables if they do not exist."""
    # Register the mapped tables on Base.metadata.
    from .models import tweet, user  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
