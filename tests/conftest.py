# Imports for testing tools
import os
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

# --- Test Database Setup ---
# Settings are read at import time, so point them at the test database first
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_spotbnb.db"
os.environ["DATABASE_URL"] = SQLALCHEMY_DATABASE_URL
os.environ.setdefault("SECRET_KEY", "test-secret")

# Import your application code
from spotbnb import auth, models  # noqa: E402
from spotbnb.database import Base, get_db, get_redis_client  # noqa: E402
from spotbnb.limits import ALL_LIMITERS  # noqa: E402
from spotbnb.main import app  # noqa: E402

engine = create_engine(
    SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False}
)


# pysqlite needs to leave transaction control to SQLAlchemy for SAVEPOINTs to work
@event.listens_for(engine, "connect")
def _disable_pysqlite_transactions(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _emit_begin(conn):
    conn.exec_driver_sql("BEGIN")


# Objects built by a test stay readable after a request commits and closes the shared session.
# Session commits and rollbacks work on a SAVEPOINT, so the test's outer transaction survives both.
TestingSessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    join_transaction_mode="create_savepoint",
    bind=engine,
)


# --- Database Management Fixtures ---
@pytest.fixture(scope="session", autouse=True)
def setup_db():
    """Creates and drops the test database tables."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """Provides a clean database session for each test."""
    connection = engine.connect()
    transaction = connection.begin()
    session = TestingSessionLocal(bind=connection)
    yield session
    session.close()
    transaction.rollback()
    connection.close()


# --- Mocking External Services ---
@pytest.fixture(scope="function", autouse=True)
def mock_rate_limiter_init(mocker):
    """
    Keeps the app lifespan from reaching for a real Redis server.
    """
    mocker.patch("spotbnb.main.FastAPILimiter.init", new_callable=AsyncMock)


@pytest.fixture(scope="function")
def redis_mock():
    """A Redis stand-in that always misses."""
    client = MagicMock()
    client.get.return_value = None
    return client


# --- API Test Client Fixture ---
@pytest.fixture(scope="function")
def client(db_session, redis_mock):
    """Provides a TestClient wired to the test session and mocked Redis."""
    def override_get_db():
        try:
            yield db_session
        finally:
            db_session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_client] = lambda: redis_mock
    for limiter in ALL_LIMITERS:
        app.dependency_overrides[limiter] = lambda: None

    with TestClient(app) as c:
        yield c

    # Clean up overrides
    app.dependency_overrides.clear()


# --- Data helpers ---
@pytest.fixture
def make_user(db_session):
    """Creates users directly in the database."""
    counter = {"n": 0}

    def _make_user(first_name="Demo", last_name="User", **overrides):
        counter["n"] += 1
        n = counter["n"]
        user = models.User(
            first_name=first_name,
            last_name=last_name,
            email=overrides.pop("email", f"user{n}@spotbnb.io"),
            username=overrides.pop("username", f"user{n}"),
            hashed_password=overrides.pop("hashed_password", "not-a-real-hash"),
            **overrides,
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_spot(db_session):
    """Creates spots directly in the database."""
    def _make_spot(owner, **overrides):
        fields = {
            "address": "123 Disney Lane",
            "city": "San Francisco",
            "state": "California",
            "country": "United States of America",
            "lat": 37.7645358,
            "lng": -122.4730327,
            "name": "App Academy",
            "description": "Place where web developers are created",
            "price": 123.0,
        }
        fields.update(overrides)
        spot = models.Spot(owner_id=owner.id, **fields)
        db_session.add(spot)
        db_session.commit()
        return spot

    return _make_spot


@pytest.fixture
def auth_headers():
    """Builds authorization headers carrying a session token for a user."""
    def _auth_headers(user) -> dict:
        return {"Authorization": f"Bearer {auth.create_access_token(user.id)}"}

    return _auth_headers


@pytest.fixture
def owner(make_user):
    return make_user(first_name="Olivia", last_name="Owner")


@pytest.fixture
def guest(make_user):
    return make_user(first_name="Gary", last_name="Guest")


@pytest.fixture
def spot(make_spot, owner):
    return make_spot(owner)
