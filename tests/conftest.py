import os

# settings and the engine are built at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["IDENTITY_MODE"] = "local"
os.environ["ENVIRONMENT"] = "development"

import pytest
from fastapi.testclient import TestClient

from property_service.app.main import app
from shared.core.config import settings
from shared.core.database import Base, property_engine


@pytest.fixture
def client():
    Base.metadata.drop_all(bind=property_engine)
    Base.metadata.create_all(bind=property_engine)

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def strict_integrity(monkeypatch):
    monkeypatch.setattr(settings, "STRICT_INTEGRITY", True)
