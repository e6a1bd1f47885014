# tests/conftest.py
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from main import app


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, username, password="password123"):
    response = client.post("/auth/register", json={
        "email": f"{username}@example.com",
        "username": username,
        "password": password,
        "firstName": username.capitalize(),
    })
    assert response.status_code == 201, response.json()
    data = response.json()["data"]
    return {
        "user": data["user"],
        "token": data["accessToken"],
        "headers": {"Authorization": f"Bearer {data['accessToken']}"},
    }


def create_team(client, owner, name="Platform", team_type="PUBLIC"):
    response = client.post("/teams", json={"name": name, "type": team_type}, headers=owner["headers"])
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def create_task(client, author, team_id, title, **fields):
    response = client.post("/tasks", json={"title": title, "teamId": team_id, **fields}, headers=author["headers"])
    assert response.status_code == 201, response.json()
    return response.json()["data"]


def column(client, member, team_id, status="TODO"):
    """Titles of one column in display order"""
    response = client.get("/tasks", params={"teamId": team_id, "status": status, "sortBy": "order"},
                          headers=member["headers"])
    return [task["title"] for task in response.json()["data"]["tasks"]]


@pytest.fixture
def alice(client):
    return register(client, "alice")


@pytest.fixture
def bob(client):
    return register(client, "bob")


@pytest.fixture
def mallory(client):
    return register(client, "mallory")


@pytest.fixture
def team(client, alice, bob):
    """Public team owned by alice with bob as a plain member"""
    team = create_team(client, alice)
    response = client.post("/teams/join", json={"teamId": team["id"]}, headers=bob["headers"])
    assert response.status_code == 200, response.json()
    return team
