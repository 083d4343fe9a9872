"""
Pytest fixtures: an in-memory MongoDB (mongomock) injected in place of the
real client, a RecordStore over it, and a Flask test client with seeded users.
"""
import mongomock
import pytest
from werkzeug.security import generate_password_hash

import records

PASSWORD = 'secret123'
FISCAL_YEAR = '2081/082'

SEED_USERS = [
    ('superadmin', 'SUPER_ADMIN', 'Super Admin'),
    ('admin', 'ADMIN', 'Admin User'),
    ('keeper', 'STOREKEEPER', 'Ram Bahadur'),
    ('account', 'ACCOUNT', 'Gita Sharma'),
    ('approver', 'APPROVAL', 'Sita Karki'),
    ('staff', 'STAFF', 'Hari Thapa'),
]


@pytest.fixture
def mongo_client(monkeypatch):
    """Every get_mongo_client() call in the app returns this one in-memory client"""
    monkeypatch.delenv('DB_NAME', raising=False)
    client = mongomock.MongoClient()
    monkeypatch.setattr(records, 'get_mongo_client', lambda: client)
    return client


@pytest.fixture
def db(mongo_client):
    return records.get_database(mongo_client)


@pytest.fixture
def store(db):
    return records.RecordStore(db)


@pytest.fixture
def seeded_users(store):
    for username, role, full_name in SEED_USERS:
        store.save(records.USERS, {
            'username': username,
            'password_hash': generate_password_hash(PASSWORD),
            'full_name': full_name,
            'designation': role.title(),
            'role': role,
        })
    return store


@pytest.fixture
def app(mongo_client, monkeypatch):
    """Create Flask application for testing"""
    import app as app_module
    monkeypatch.setattr(app_module, 'ADMIN_PASSWORD', 'bootstrap-pass')
    app_module.app.config['TESTING'] = True
    return app_module.app


@pytest.fixture
def client(app, seeded_users):
    """Create Flask test client"""
    return app.test_client()


def login_user(client, username, password=PASSWORD, fiscal_year=FISCAL_YEAR):
    """Helper function to login a user"""
    return client.post('/login', data={
        'username': username,
        'password': password,
        'fiscal_year': fiscal_year,
    })


def logout_user(client):
    return client.get('/logout')
