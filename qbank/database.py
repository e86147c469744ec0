"""Database utilities and setup for the local durable storage."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from qbank.config import DATABASE_URL


def make_engine(url: str) -> Engine:
    """Create an engine, allowing SQLite use across the threadpool."""
    return create_engine(
        url,
        connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
    )


# Create engine
engine = make_engine(DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Base class for models
class Base(DeclarativeBase):
    """Base class for all database models."""
    pass


def init_db(bind: Engine | None = None) -> None:
    """Initialize database (create all tables)."""
    # Register models on the metadata before create_all
    import qbank.models.db  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
