"""Shared fixtures for the kinship test suite."""
import os

# Set env vars BEFORE any app imports
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from kinship import crud
from kinship.db import create_db_engine, get_db, init_db


# ── Database fixtures ──

@pytest.fixture
def engine():
    """Fresh in-memory SQLite store, discarded after each test."""
    eng = create_db_engine("sqlite://")
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    """Session for crud-level tests."""
    with Session(engine) as session:
        yield session


# ── Person fixtures ──

@pytest.fixture
def person_mom(db):
    return crud.create_person(db, "Mom", birth_date="1960-03-02")


@pytest.fixture
def person_dad(db):
    return crud.create_person(db, "Dad", birth_date="1958-11-20")


@pytest.fixture
def person_child(db):
    return crud.create_person(db, "Child", birth_date="1990-05-01")


@pytest.fixture
def family(db, person_mom, person_dad, person_child):
    """Two parents of one child: mom->child, dad->child."""
    crud.create_relationship(db, person_mom.id, person_child.id)
    crud.create_relationship(db, person_dad.id, person_child.id)
    return {"mom": person_mom, "dad": person_dad, "child": person_child}


# ── FastAPI app fixtures ──

@pytest.fixture
def client(engine):
    """TestClient whose requests each get their own session on the test store."""
    from kinship.main import app

    def override_get_db():
        session = Session(engine)
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_person(client):
    """Factory: POST a person and return the JSON body."""
    def _factory(full_name, **fields):
        resp = client.post("/people", json={"full_name": full_name, **fields})
        assert resp.status_code == 200, resp.text
        return resp.json()
    return _factory
