"""Pytest fixtures for the document-management authorization tests."""

from types import SimpleNamespace
from unittest import mock

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import models.database as database
from models.database import Base, make_engine
from core.cedar_engine import CedarEngine
from core.config import DEFAULT_POLICY_PATH
from core.rule_engine import RuleTableEngine
from scenarios.demo_data import seed_fixtures


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with the schema created."""
    import models.entities  # noqa: F401 - register tables

    engine = make_engine("sqlite://", poolclass=StaticPool)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(db_engine):
    """
    Session over a store seeded with the fixture data.

    Example:
        def test_owner(session):
            context = EntityLoader(session).load("alice", "doc1")
            assert context.document_owner == "alice"
    """
    factory = sessionmaker(bind=db_engine, autoflush=False)
    session = factory()
    seed_fixtures(session)
    session.commit()
    yield session
    session.close()


@pytest.fixture
def cli_database(db_engine, session, monkeypatch):
    """Point models.database.get_session() at the seeded test store."""
    monkeypatch.setattr(
        database, "SessionLocal",
        sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    )
    return db_engine


@pytest.fixture(scope="session")
def cedar_engine():
    return CedarEngine.from_file(DEFAULT_POLICY_PATH)


@pytest.fixture(params=["cedar", "local"])
def engine(request, cedar_engine):
    """Each embedded engine in turn; both must agree on every rule."""
    if request.param == "cedar":
        return cedar_engine
    return RuleTableEngine()


@pytest.fixture
def fga_client():
    """
    Stand-in for the OpenFGA SDK client.

    One store, one model, every check allowed unless a test says otherwise.
    """
    client = mock.MagicMock()
    client.__enter__.return_value = client
    client.list_stores.return_value = SimpleNamespace(stores=[SimpleNamespace(id="store-1")])
    client.read_authorization_models.return_value = SimpleNamespace(
        authorization_models=[SimpleNamespace(id="model-1")]
    )
    client.check.return_value = SimpleNamespace(allowed=True)
    return client
