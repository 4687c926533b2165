import os

# Settings() lê o ambiente na importação de app.*
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["SQLALCHEMY_DATABASE_URI"] = "sqlite://"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api import deps
from app.core.config import settings
from app.core.security import create_access_token
from app.db.base import Base
from app.main import app
from app.services.hierarchy import HierarchyStore

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def tables():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def backup_settings(monkeypatch):
    monkeypatch.setattr(settings, "BACKUP_RETENTION_LIMIT", 30)
    monkeypatch.setattr(settings, "AUTO_BACKUP_ON_BULK_UPDATE", True)


@pytest.fixture
def db():
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def client():
    def override_get_db():
        session = TestingSessionLocal()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[deps.get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {create_access_token('tester')}"}


SEED = {
    "brands": [
        {"id": 1, "name": "BMW", "slug": "bmw"},
        {"id": 2, "name": "Audi", "slug": "audi"},
    ],
    "groups": [
        {"id": 10, "brand_id": 1, "name": "M", "slug": "m", "is_performance": True},
        {"id": 11, "brand_id": 2, "name": "RS", "slug": "rs", "is_performance": True},
    ],
    "models": [
        {"id": 100, "name": "M3", "slug": "m3", "brand_id": 1, "group_id": 10},
        {"id": 101, "name": "Serie 3", "slug": "serie-3", "brand_id": 1},
        {"id": 102, "name": "RS6", "slug": "rs6", "brand_id": 2, "group_id": 11},
    ],
    "types": [
        {"id": 200, "name": "G80", "slug": "g80", "model_id": 100, "brand_id": 1},
        {"id": 201, "name": "F30", "slug": "f30", "model_id": 101, "brand_id": 1},
        {"id": 202, "name": "C8", "slug": "c8", "model_id": 102, "brand_id": 2},
    ],
    "engines": [
        {"id": 300, "name": "S58", "slug": "s58", "type_id": 200, "model_id": 100, "fuel": "petrol"},
        {"id": 301, "name": "B48", "slug": "b48", "type_id": 201, "model_id": 101, "fuel": "petrol"},
        {"id": 302, "name": "4.0 TFSI", "slug": "4.0-tfsi", "type_id": 202, "model_id": 102, "fuel": "petrol"},
    ],
    "stages": [
        {"id": 400, "engine_id": 300, "stage_name": "Stage 1", "stock_hp": 510, "tuned_hp": 550, "price": 1000},
        {"id": 401, "engine_id": 300, "stage_name": "Stage 1+", "stock_hp": 510, "tuned_hp": 580, "price": 900},
        {"id": 402, "engine_id": 300, "stage_name": "Stage 2", "stock_hp": 510, "tuned_hp": 620, "price": 1500},
        {"id": 403, "engine_id": 301, "stage_name": "Stage 2", "stock_hp": 184, "tuned_hp": 260, "price": 800},
        {"id": 404, "engine_id": 302, "stage_name": "Stage 1", "stock_nm": 800, "tuned_nm": 950, "price": 1200},
    ],
}


@pytest.fixture
def seeded(db):
    store = HierarchyStore(db)
    for collection, rows in SEED.items():
        for row in rows:
            store.insert(collection, dict(row))
    db.commit()
    return db
