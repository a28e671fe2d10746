# pkgregistry/core/database.py
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from contextlib import contextmanager
from typing import Iterator
from ..domain.db_models import Base
import os


def make_engine(db_url: str) -> Engine:
    """Create an engine; SQLite files get their directory created first."""
    if db_url.startswith("sqlite:///") and db_url != "sqlite:///:memory:":
        db_path = db_url.replace("sqlite:///", "")
        os.makedirs(os.path.dirname(db_path) if os.path.dirname(db_path) else ".", exist_ok=True)
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    return create_engine(db_url, connect_args=connect_args)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Initialize database tables"""
    Base.metadata.create_all(bind=engine)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator[Session]:
    """Database session context manager"""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
