import os

# Settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing-only")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from worktrack.api import deps
from worktrack.db.session import get_db, init_db
from worktrack.main import app
from worktrack.models.profile import Profile
from worktrack.services import clients


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    with Session(engine) as session:
        yield session


def _profile(db: Session, email: str, full_name: str) -> Profile:
    profile = Profile(email=email, full_name=full_name)
    db.add(profile)
    db.commit()
    db.refresh(profile)
    return profile


@pytest.fixture
def alice(db):
    return _profile(db, "alice@example.com", "Alice Adams")


@pytest.fixture
def bob(db):
    return _profile(db, "bob@example.com", "Bob Brown")


@pytest.fixture
def acme(db, alice):
    return clients.create_client(db, {"company": "Acme Corp"}, alice)


@pytest.fixture
def anon_client(db):
    """TestClient against the test database with no profile logged in."""
    app.dependency_overrides[get_db] = lambda: db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def api(db, alice):
    """TestClient with `alice` as the logged-in profile."""
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[deps.get_current_active_user] = lambda: alice
    yield TestClient(app)
    app.dependency_overrides.clear()
