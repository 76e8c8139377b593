import mongomock
import pytest
from fastapi.testclient import TestClient

from garden_site.api.server import create_app
from garden_site.auth.security import create_access_token
from garden_site.config import Config
from garden_site.db import MongoDatabase
from garden_site.storage import Storage

JWT_SECRET = "test-secret"


@pytest.fixture()
def cfg() -> Config:
    return Config(DB_NAME="garden_site_test", JWT_SECRET=JWT_SECRET, SEED_DEMO_DATA=True)


@pytest.fixture()
def database():
    db = MongoDatabase("mongodb://localhost:27017", "garden_site_test", client=mongomock.MongoClient(tz_aware=True))
    db.connect()
    yield db
    db.close()


@pytest.fixture()
def storage(database) -> Storage:
    return Storage(database)


@pytest.fixture()
def client(cfg, database):
    app = create_app(cfg, database)
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def admin_token(client) -> str:
    res = client.post("/api/admin/login", json={"email": "admin@example.com", "password": "password123"})
    assert res.status_code == 200, res.text
    return res.json()["token"]


@pytest.fixture()
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


def token_for(user_id: str, role: str, email: str = "someone@example.com") -> str:
    return create_access_token(secret=JWT_SECRET, user_id=user_id, email=email, role=role)
