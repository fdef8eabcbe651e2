"""Shared fixtures: an app on in-memory SQLite and owners with bearer tokens."""
import base64
import os
import sys
from datetime import timedelta
from pathlib import Path

import pytest

# Allow running tests from backend/ without installing the package.
_BACKEND_DIR = Path(__file__).resolve().parent.parent
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

os.environ.setdefault('SECRET_KEY', 'test-secret-key')
os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('JWT_SECRET_KEY', 'test-jwt-secret-key-for-owner-tokens')
os.environ.setdefault('PHI_ENCRYPTION_KEY', base64.b64encode(b'k' * 32).decode())
os.environ.pop('FLASK_ENV', None)

from bp_tracker import create_app, db  # noqa: E402
from bp_tracker.models import User, BloodPressureReading  # noqa: E402
from bp_tracker.utils.auth import generate_owner_token  # noqa: E402
from bp_tracker.utils.dates import utcnow  # noqa: E402


@pytest.fixture(scope='session')
def audit_log_file(tmp_path_factory):
    return str(tmp_path_factory.mktemp('logs') / 'audit.log')


@pytest.fixture
def app(audit_log_file):
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'AUDIT_LOG_FILE': audit_log_file,
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def owner(app):
    return User.get_or_create('demo')


@pytest.fixture
def other_owner(app):
    return User.get_or_create('someone-else')


def bearer(user):
    return {'Authorization': f'Bearer {generate_owner_token(user.id)}'}


@pytest.fixture
def auth_headers(owner):
    return bearer(owner)


def add_reading(owner_id, systolic, diastolic, days_ago=0, **extra):
    """Store a reading recorded `days_ago` days before now."""
    values = {
        'systolic': systolic,
        'diastolic': diastolic,
        'recorded_at': utcnow() - timedelta(days=days_ago),
    }
    values.update(extra)
    return BloodPressureReading.create_for_owner(owner_id, values)
