"""
Database schema and connection management.

Uses SQLite with SQLAlchemy as a key/value table for registry persistence.
"""

from datetime import datetime
from pathlib import Path
from sqlalchemy import create_engine, Column, String, Text, DateTime
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


class KeyValue(Base):
    """One persisted value, stored as JSON text."""

    __tablename__ = "key_values"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)


def get_engine(db_path: Path) -> Engine:
    return create_engine(f"sqlite:///{db_path}")


def init_database(db_path: Path) -> Engine:
    """
    Initialize database and create tables.

    Args:
        db_path: Path to SQLite database file

    Returns:
        Engine bound to the database; the caller owns it and disposes it
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(db_path)
    Base.metadata.create_all(engine)
    return engine


def get_session(engine: Engine):
    """
    Get database session.

    Args:
        engine: Engine returned by init_database()

    Returns:
        SQLAlchemy session
    """
    Session = sessionmaker(bind=engine)
    return Session()
