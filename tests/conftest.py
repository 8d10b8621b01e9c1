from __future__ import annotations

import pytest

import shifteaze.db as app_db
import shifteaze.models  # noqa: F401


@pytest.fixture(autouse=True)
def reset_database(tmp_path, monkeypatch):
    """Give every test its own SQLite file with the full schema."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'shifteaze.db'}")
    engine = app_db.rebind()
    app_db.Base.metadata.create_all(bind=engine)
    yield
    app_db.Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db():
    session = app_db.SessionLocal()
    try:
        yield session
    finally:
        session.close()
