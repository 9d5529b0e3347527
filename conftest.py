# conftest.py

import os
import tempfile

import pytest

# Set testing environment BEFORE importing app to prevent database corruption
# This ensures app.py uses TestingConfig when imported
os.environ["FLASK_ENV"] = "testing"

# Now import app and other modules after environment is set
from app import app as flask_app
from discfinder.importer import init_importer
from discfinder.models import Profile, Source, StagedProfile, UserAccount, UserRole, db


@pytest.fixture(scope="function")
def app():
    """Create and configure a test Flask application"""
    import uuid

    # Create a unique temporary database file for each test
    db_fd, temp_db = tempfile.mkstemp(suffix=f"_{uuid.uuid4().hex[:8]}.db")

    try:
        flask_app.config.update(
            {
                "TESTING": True,
                "WTF_CSRF_ENABLED": False,
                "SQLALCHEMY_DATABASE_URI": f"sqlite:///{temp_db}",
                "SECRET_KEY": "test-secret-key-for-testing-only",
                "ENABLE_FILE_LOGGING": False,
                "ENABLE_CONSOLE_LOGGING": False,
                "LOG_LEVEL": "DEBUG",
                "LOG_FORMAT": "text",
                "IMPORTER_ENABLED": True,
                "IMPORTER_ROW_DELAY_SECONDS": 0.0,
                "IMPORTER_ERROR_PREVIEW_LIMIT": 10,
                "BOOTSTRAP_ADMIN_EMAILS": (),
            }
        )

        # Re-initialize logging with updated config to pick up LOG_LEVEL=DEBUG
        from discfinder.utils.logging_config import setup_logging

        setup_logging(flask_app)
        init_importer(flask_app)

        with flask_app.app_context():
            # Drop any existing tables to ensure clean state
            db.drop_all()
            db.create_all()
            yield flask_app
            db.session.remove()
            db.session.close()
            db.drop_all()
    finally:
        # Always close and remove the temporary database file, even on error
        try:
            os.close(db_fd)
        except OSError:
            pass
        try:
            if os.path.exists(temp_db):
                os.unlink(temp_db)
        except OSError:
            pass


@pytest.fixture(autouse=True)
def app_context(app):
    """Automatically provide app context for all tests"""
    with app.app_context():
        yield


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    return app.test_client()


@pytest.fixture
def runner(app):
    """Create a test CLI runner for the Flask application"""
    return app.test_cli_runner()


@pytest.fixture
def make_account():
    """Create an account, optionally with a canonical profile"""

    def _factory(email="member@example.com", password="correct-horse", *, role=None, full_name=None):
        account = UserAccount(email=email, is_active=True)
        account.set_password(password)
        db.session.add(account)
        db.session.flush()
        if role is not None:
            db.session.add(Profile(account_id=account.id, email=email, role=role, full_name=full_name))
        db.session.commit()
        return account

    return _factory


@pytest.fixture
def admin_client(client, make_account):
    """Test client signed in as an administrator"""
    make_account("admin@example.com", "admin-password", role=UserRole.ADMIN, full_name="Admin User")
    response = client.post("/api/auth/login", json={"email": "admin@example.com", "password": "admin-password"})
    assert response.status_code == 200
    return client


@pytest.fixture
def source_factory():
    def _factory(name="Swope Park", legacy_row_id="SRC-1", **kwargs):
        source = Source(name=name, legacy_row_id=legacy_row_id, **kwargs)
        db.session.add(source)
        db.session.commit()
        return source

    return _factory


@pytest.fixture
def staged_profile_factory():
    def _factory(email="legacy@example.com", **kwargs):
        kwargs.setdefault("role", UserRole.GUEST)
        staged = StagedProfile(email=email, needs_activation=True, **kwargs)
        db.session.add(staged)
        db.session.commit()
        return staged

    return _factory


@pytest.fixture
def write_csv(tmp_path):
    """Write a CSV export to a temp file and return its path"""

    def _write(text, name="export.csv"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
