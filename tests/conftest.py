from __future__ import annotations

import os
import sys
from io import BytesIO

import pytest
from fastapi.testclient import TestClient
from openpyxl import Workbook
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

import importlib

fastapi_app = importlib.import_module("consulta.main").app
from consulta.db.base import Base
from consulta.db.session import get_db

# Ensure all models are registered with SQLAlchemy metadata
import consulta.models  # noqa: F401


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture(scope="function")
def db_session(engine):
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(scope="function")
def client(engine, db_session):
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def _override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    fastapi_app.dependency_overrides[get_db] = _override_get_db
    with TestClient(fastapi_app) as test_client:
        yield test_client
    fastapi_app.dependency_overrides.clear()


def build_sheet_bytes(cells: dict[str, object], *, header: bool = True) -> bytes:
    """Carrier-style workbook: `cells` maps A1 addresses ("D2") to values."""
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = "Consulta"
    if header:
        for address, label in {
            "D1": "Referência",
            "E1": "Última Ocorrência",
            "F1": "Data Última Ocorrência",
            "Q1": "Valor Mercadoria",
        }.items():
            sheet[address] = label
    for address, value in cells.items():
        sheet[address] = value
    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def sheet_bytes():
    return build_sheet_bytes
