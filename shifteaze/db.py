from __future__ import annotations

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker


def get_database_url() -> str:
    raw_url = os.getenv("DATABASE_URL", "sqlite:///./shifteaze.db")
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+psycopg://", 1)
    if raw_url.startswith("postgresql://") and "+" not in raw_url.split("://", 1)[0]:
        return raw_url.replace("postgresql://", "postgresql+psycopg://", 1)
    return raw_url


def build_engine(url: str) -> Engine:
    # SQLite connections are shared across the threads FastAPI runs sync routes on.
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


def build_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=bind, expire_on_commit=False)


DATABASE_URL = get_database_url()
engine = build_engine(DATABASE_URL)
SessionLocal = build_session_factory(engine)
Base = declarative_base()


def rebind(url: str | None = None) -> Engine:
    """Point ``engine`` and ``SessionLocal`` at another database, disposing the old pool."""
    global DATABASE_URL, engine, SessionLocal
    engine.dispose()
    DATABASE_URL = url or get_database_url()
    engine = build_engine(DATABASE_URL)
    SessionLocal = build_session_factory(engine)
    return engine


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
