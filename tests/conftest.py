"""Shared fixtures: an in-memory SQLite database, storage and an API client.

OpenObserve and Redis are replaced by in-process fakes, every event sent to
OpenObserve is recorded in the `events` fixture.
"""

from datetime import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from wheely.src.db import ORMbase, Period, Route, User
from wheely.src.argon2 import makePassword
from wheely.src.repository import Storage

USER_PASSWORD = "Secret#123"


class FakeLock:
    def __init__(self, name: str):
        self.name = name
        self.held = False

    def acquire(self, blocking=True, blocking_timeout=None):
        self.held = True
        return True

    def locked(self):
        return self.held

    def owned(self):
        return self.held

    def release(self):
        self.held = False


class FakeRedis:
    def __init__(self):
        self.locks = []

    def lock(self, name, timeout=None):
        lock = FakeLock(name)
        self.locks.append(lock)
        return lock


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enableForeignKeys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    ORMbase.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sessionFactory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(sessionFactory):
    session = sessionFactory()
    yield session
    session.close()


@pytest.fixture
def storage(session):
    return Storage(session)


@pytest.fixture
def user(session):
    user = User(name="Ana", email="ana@wheely.com", password=makePassword(USER_PASSWORD))
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def otherUser(session):
    user = User(name="Luis", email="luis@wheely.com", password=makePassword(USER_PASSWORD))
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def route(session):
    route = Route(name="Ruta 1", origin="Centro", destination="Terminal Norte")
    session.add(route)
    session.commit()
    return route


@pytest.fixture
def dayPeriods(session):
    """Morning 06-12, Afternoon 12-18 and Night 18-06, covering the whole day."""
    periods = [
        Period(name="Morning", start_time=time(6), end_time=time(12)),
        Period(name="Afternoon", start_time=time(12), end_time=time(18)),
        Period(name="Night", start_time=time(18), end_time=time(6)),
    ]
    session.add_all(periods)
    session.commit()
    return periods


@pytest.fixture
def events(monkeypatch):
    recorded = []
    monkeypatch.setattr(
        "wheely.src.openobserve.logEvent", lambda eventData: recorded.append(eventData)
    )
    return recorded


@pytest.fixture
def fakeRedis(monkeypatch):
    redis = FakeRedis()
    monkeypatch.setattr("wheely.src.redis.redisClient", redis)
    return redis


@pytest.fixture
def client(monkeypatch, sessionFactory, events, fakeRedis):
    from wheely.api import (
        favorite_route,
        period,
        report,
        route_time,
        user_account,
        user_token,
    )
    from wheely.api import route as route_api
    from wheely import main

    for module in (
        main,
        favorite_route,
        period,
        report,
        route_api,
        route_time,
        user_account,
        user_token,
    ):
        monkeypatch.setattr(module, "sessionMaker", sessionFactory)

    with TestClient(main.app) as client:
        yield client


def login(client: TestClient, email: str, password: str = USER_PASSWORD) -> dict:
    response = client.post(
        "/user/account/token", data={"email": email, "password": password}
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auth(client, user):
    return login(client, user.email)
