"""
Shared fixtures: an application per test backed by a throwaway SQLite file
"""
import pytest

from asset_application.app import create_app

TEST_PASSWORD = 'Str0ng!Pass'


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', overrides={
        'DATABASE_PATH': tmp_path / 'assets_test.db',
        'LOG_DIR': tmp_path / 'logs',
    })
    yield app


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


def register_user(client, email='owner@example.com', password=TEST_PASSWORD):
    response = client.post('/api/register', json={
        'email': email,
        'password': password,
        'full_name': 'Test Owner',
        'company_name': 'Acme Sdn Bhd',
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()['user_id']


@pytest.fixture
def user_id(client):
    return register_user(client)


@pytest.fixture
def logged_in_client(client, user_id):
    """Test client whose session belongs to a registered user"""
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
        sess['email'] = 'owner@example.com'
    return client


def asset_payload(**overrides):
    payload = {
        'asset_code': 'LAP-001',
        'name': 'Dell Latitude 7440',
        'category': 'IT Equipment',
        'location': 'HQ Level 3',
        'assigned_to': 'Finance',
        'purchase_date': '2023-01-01',
        'purchase_price': 12000,
        'useful_life': 5,
        'status': 'active',
    }
    payload.update(overrides)
    return payload
