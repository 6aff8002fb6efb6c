from datetime import date, time, timedelta

import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.db.session import Database
from app.main import create_app
from app.services import store


@pytest.fixture
def database(tmp_path):
    database = Database(f"sqlite:///{tmp_path / 'test.db'}").open()
    database.create_schema()
    yield database
    database.close()


@pytest.fixture
def db(database):
    with database.session() as session:
        yield session


@pytest.fixture
def client(database):
    app = create_app(database=database)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    resp = client.post("/admin/login", json={"password": settings.admin_password})
    assert resp.status_code == 200
    return client


@pytest.fixture
def future_day() -> date:
    return date.today() + timedelta(days=10)


@pytest.fixture
def past_day() -> date:
    return date.today() - timedelta(days=2)


@pytest.fixture
def make_presence(db):
    def _make(day: date, start: str = "09:00", end: str = "10:00", location: str = "Gare") -> int:
        return store.create_presence(db, location, day, time.fromisoformat(start), time.fromisoformat(end))

    return _make
