# tests/conftest.py

import pytest

from config import Config


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"


@pytest.fixture
def app_with_db():
    """
    Creates a new app instance with an in-memory database and yields it
    within an application context.
    """
    from app import create_app, db

    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app  # The tests will run here
        db.session.remove()
        db.drop_all()


@pytest.fixture
def seeded_app(app_with_db):
    """The same app with default settings and the sample month loaded."""
    from app.seed import seed_data
    seed_data()
    return app_with_db


@pytest.fixture
def client(seeded_app):
    return seeded_app.test_client()
