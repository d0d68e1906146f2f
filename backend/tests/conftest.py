import pytest
from unittest.mock import patch
from flask import Flask
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from base import Base
from routes.discounts import discounts_bp
from services.discounts import DiscountService
from services.repository import DiscountRepository
from services.composition import LITERAL_REDUCERS
import schema

@pytest.fixture
def engine():
    """In-memory SQLite DB for fast testing."""
    _engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(_engine)
    yield _engine
    Base.metadata.drop_all(_engine)

@pytest.fixture
def db_session(engine):
    """Provides a transactional database session."""
    TestSession = sessionmaker(bind=engine)
    s = TestSession()
    try:
        yield s
    finally:
        s.close()

@pytest.fixture
def repository(db_session):
    return DiscountRepository(db_session)

@pytest.fixture
def service(repository):
    """Service with a fixed GOLD tier for every user and the literal composition policy."""
    return DiscountService(repository, resolve_tier=lambda user_id: "GOLD", reducers=LITERAL_REDUCERS)

@pytest.fixture
def app(engine):
    """Provides a pre-configured Flask app with the discounts blueprint and mocked db."""
    TestSession = sessionmaker(bind=engine)

    def mock_get_db():
        s = TestSession()
        try:
            yield s
        finally:
            s.close()

    flask_app = Flask(__name__)
    flask_app.register_blueprint(discounts_bp, url_prefix="/api/v1")
    flask_app.config["TESTING"] = True

    with patch("routes.discounts.get_db", mock_get_db):
        yield flask_app

@pytest.fixture
def client(app):
    """Provides a Flask test client."""
    return app.test_client()
