#!/usr/bin/env python3
"""
Test the asset, category, maintenance and depreciation API endpoints
"""
import math
from datetime import date, timedelta

import pytest

from asset_application.app import create_app
from conftest import asset_payload, register_user


def create_asset(client, **overrides):
    response = client.post('/api/assets', json=asset_payload(**overrides))
    assert response.status_code == 201, response.get_json()
    return response.get_json()['asset']


def logged_in_app_client(app):
    """Test client for a separately configured app, logged in as a fresh user"""
    client = app.test_client()
    user_id = register_user(client)
    with client.session_transaction() as sess:
        sess['user_id'] = user_id
    return client


def test_create_asset_recomputes_current_value(logged_in_client):
    asset = create_asset(logged_in_client)

    assert asset['asset_code'] == 'LAP-001'
    assert asset['useful_life'] == 5
    assert 0 <= asset['current_value'] < 12000


def test_create_asset_validation_errors(logged_in_client):
    response = logged_in_client.post('/api/assets', json={'name': '', 'purchase_price': 0})
    assert response.status_code == 400
    errors = response.get_json()['errors']
    for field in ('asset_code', 'name', 'category', 'location', 'assigned_to', 'purchase_date', 'purchase_price'):
        assert field in errors


def test_invalid_status_is_rejected(logged_in_client):
    response = logged_in_client.post('/api/assets', json=asset_payload(status='lost'))
    assert response.status_code == 400
    assert 'status' in response.get_json()['errors']


def test_useful_life_is_clamped(logged_in_client):
    asset = create_asset(logged_in_client, useful_life=80)
    assert asset['useful_life'] == 50


@pytest.mark.parametrize('field,value', [
    ('useful_life', 'inf'),
    ('useful_life', '-inf'),
    ('useful_life', 'nan'),
    ('purchase_price', 'nan'),
    ('purchase_price', 'inf'),
])
def test_non_finite_numbers_are_rejected(logged_in_client, field, value):
    response = logged_in_client.post('/api/assets', json=asset_payload(**{field: value}))
    assert response.status_code == 400
    assert field in response.get_json()['errors']
    assert logged_in_client.get('/api/assets').get_json()['assets'] == []


def test_non_finite_update_is_rejected_and_schedule_stays_finite(logged_in_client):
    asset = create_asset(logged_in_client)

    response = logged_in_client.put(f"/api/assets/{asset['asset_id']}", json={'purchase_price': 'inf'})
    assert response.status_code == 400
    response = logged_in_client.put(f"/api/assets/{asset['asset_id']}", json={'useful_life': 'inf'})
    assert response.status_code == 400

    body = logged_in_client.get('/api/depreciation/schedule?as_of_date=2024-01-01').get_json()
    totals = body['schedule']['totals']
    assert all(math.isfinite(value) for value in totals.values())
    assert totals['cost_final_balance'] == pytest.approx(12000)


def test_duplicate_asset_code_is_conflict(logged_in_client):
    create_asset(logged_in_client)
    response = logged_in_client.post('/api/assets', json=asset_payload(name='Another'))
    assert response.status_code == 409


def test_list_assets_with_filters(logged_in_client):
    create_asset(logged_in_client)
    create_asset(logged_in_client, asset_code='DSK-002', name='Desk', category='Furniture',
                 purchase_date='2023-06-15', status='maintenance')

    body = logged_in_client.get('/api/assets').get_json()
    assert body['total_count'] == 2
    assert len(body['assets']) == 2

    body = logged_in_client.get('/api/assets?search=dsk').get_json()
    assert [a['asset_code'] for a in body['assets']] == ['DSK-002']

    body = logged_in_client.get('/api/assets?category=IT%20Equipment').get_json()
    assert [a['asset_code'] for a in body['assets']] == ['LAP-001']

    body = logged_in_client.get('/api/assets?status=maintenance').get_json()
    assert [a['asset_code'] for a in body['assets']] == ['DSK-002']

    body = logged_in_client.get('/api/assets?month=2023-01').get_json()
    assert [a['asset_code'] for a in body['assets']] == ['LAP-001']


def test_update_and_dispose_asset(logged_in_client):
    asset = create_asset(logged_in_client)
    asset_id = asset['asset_id']

    response = logged_in_client.put(f'/api/assets/{asset_id}', json={'location': 'Warehouse'})
    assert response.status_code == 200
    assert response.get_json()['asset']['location'] == 'Warehouse'

    response = logged_in_client.put(f'/api/assets/{asset_id}', json={'status': 'disposed', 'current_value': 100})
    updated = response.get_json()['asset']
    assert updated['status'] == 'disposed'
    assert updated['current_value'] == 100

    audit = logged_in_client.get(f'/api/assets/{asset_id}/audit').get_json()['audit']
    assert {'location', 'status'} <= {row['field_name'] for row in audit if row['action'] == 'UPDATE'}


def test_assets_are_scoped_to_their_owner(client, logged_in_client):
    asset = create_asset(logged_in_client)

    other_id = register_user(client, email='other@example.com')
    with client.session_transaction() as sess:
        sess['user_id'] = other_id

    assert client.get(f"/api/assets/{asset['asset_id']}").status_code == 404
    assert client.delete(f"/api/assets/{asset['asset_id']}").status_code == 404
    assert client.get('/api/assets').get_json()['assets'] == []


def test_delete_asset(logged_in_client):
    asset = create_asset(logged_in_client)
    assert logged_in_client.delete(f"/api/assets/{asset['asset_id']}").status_code == 200
    assert logged_in_client.get(f"/api/assets/{asset['asset_id']}").status_code == 404


def test_depreciation_preview(logged_in_client):
    response = logged_in_client.post('/api/depreciation/preview', json={
        'purchase_price': 12000,
        'purchase_date': '2023-01-01',
        'useful_life': 5,
        'as_of_date': '2024-01-01',
    })
    assert response.status_code == 200
    record = response.get_json()['depreciation']
    assert record['monthly_depreciation'] == pytest.approx(200)
    assert record['accumulated_depreciation'] == pytest.approx(2600)
    assert record['remaining_value'] == pytest.approx(9400)


def test_depreciation_preview_future_and_missing_date(logged_in_client):
    response = logged_in_client.post('/api/depreciation/preview', json={
        'purchase_price': 1000, 'purchase_date': '2030-01-01', 'useful_life': 5, 'as_of_date': '2024-01-01',
    })
    record = response.get_json()['depreciation']
    assert record['is_future_date'] is True
    assert record['remaining_value'] == 1000

    response = logged_in_client.post('/api/depreciation/preview', json={'purchase_price': 1000})
    assert response.status_code == 400

    response = logged_in_client.post('/api/depreciation/preview', json={
        'purchase_price': 1000, 'purchase_date': '2023-01-01', 'as_of_date': 'not-a-date',
    })
    assert response.status_code == 400


@pytest.mark.parametrize('override', [
    {'purchase_price': 'inf'},
    {'purchase_price': 'nan'},
    {'useful_life': 'inf'},
    {'current_value': 'abc'},
    {'current_value': 'inf', 'status': 'disposed'},
])
def test_depreciation_preview_rejects_bad_numbers(logged_in_client, override):
    payload = {'purchase_price': 1000, 'purchase_date': '2023-01-01', 'useful_life': 5}
    payload.update(override)
    response = logged_in_client.post('/api/depreciation/preview', json=payload)
    assert response.status_code == 400
    assert 'must be numbers' in response.get_json()['error']


@pytest.mark.parametrize('method,accumulated,rate', [
    ('straight-line', 4000, 20),
    ('declining-balance', 6400, 40),
    ('sum-of-years', 6000, 400 / 15),
])
def test_depreciation_preview_methods(tmp_path, method, accumulated, rate):
    # Exclusive counting: 2022-01-01 to 2024-01-01 is exactly two years
    app = create_app('testing', overrides={
        'DATABASE_PATH': tmp_path / 'methods.db',
        'LOG_DIR': tmp_path / 'logs',
        'MONTH_COUNTING': 'exclusive',
    })
    with logged_in_app_client(app) as client:
        response = client.post('/api/depreciation/preview', json={
            'purchase_price': 10000, 'purchase_date': '2022-01-01', 'useful_life': 5,
            'as_of_date': '2024-01-01', 'method': method,
        })
    body = response.get_json()
    assert response.status_code == 200
    assert body['method'] == method
    assert body['depreciation']['accumulated_depreciation'] == pytest.approx(accumulated)
    assert body['depreciation']['net_book_value'] == pytest.approx(10000 - accumulated)
    assert body['depreciation']['depreciation_rate'] == pytest.approx(rate)


def test_depreciation_preview_unknown_method(logged_in_client):
    response = logged_in_client.post('/api/depreciation/preview', json={
        'purchase_price': 1000, 'purchase_date': '2023-01-01', 'method': 'units-of-production',
    })
    assert response.status_code == 400
    assert 'declining-balance' in response.get_json()['error']


def test_exclusive_month_counting_config_drives_schedule(tmp_path):
    app = create_app('testing', overrides={
        'DATABASE_PATH': tmp_path / 'exclusive.db',
        'LOG_DIR': tmp_path / 'logs',
        'MONTH_COUNTING': 'exclusive',
    })
    with logged_in_app_client(app) as client:
        create_asset(client)
        body = client.get('/api/depreciation/schedule?as_of_date=2024-01-01').get_json()
        preview = client.post('/api/depreciation/preview', json={
            'purchase_price': 12000, 'purchase_date': '2023-01-01', 'useful_life': 5,
            'as_of_date': '2024-01-01',
        }).get_json()

    row = body['schedule']['rows'][0]
    assert row['months_elapsed'] == 12
    assert row['opening_depreciation'] == pytest.approx(2200)
    assert row['closing_depreciation'] == pytest.approx(2400)
    assert row['accumulated_depreciation'] == pytest.approx(2400)
    assert row['net_book_value'] == pytest.approx(9600)
    assert body['schedule']['totals']['net_book_value'] == pytest.approx(9600)
    assert preview['depreciation']['remaining_value'] == pytest.approx(9600)


def test_asset_depreciation_estimates_missing_useful_life(logged_in_client):
    asset = create_asset(logged_in_client, useful_life='')
    response = logged_in_client.get(f"/api/assets/{asset['asset_id']}/depreciation")
    body = response.get_json()

    assert response.status_code == 200
    assert body['useful_life_estimated'] is True
    assert body['useful_life'] >= 1


def test_asset_depreciation_uses_stored_life(logged_in_client):
    asset = create_asset(logged_in_client)
    body = logged_in_client.get(
        f"/api/assets/{asset['asset_id']}/depreciation?as_of_date=2024-01-01").get_json()
    assert body['useful_life_estimated'] is False
    assert body['depreciation']['net_book_value'] == pytest.approx(9400)


def test_schedule_endpoint(logged_in_client):
    create_asset(logged_in_client)
    create_asset(logged_in_client, asset_code='VAN-009', name='Van', category='Vehicles',
                 purchase_price=800, purchase_date='2021-01-01', status='disposed', current_value=100)

    body = logged_in_client.get('/api/depreciation/schedule?as_of_date=2024-01-01').get_json()
    schedule = body['schedule']
    assert schedule['row_count'] == 2
    assert schedule['totals']['cost_final_balance'] == pytest.approx(12000)
    assert schedule['totals']['disposal'] == pytest.approx(100)
    assert body['available_months'] == ['2023-01', '2021-01']

    body = logged_in_client.get('/api/depreciation/schedule?as_of_date=2024-01-01&category=Vehicles').get_json()
    assert [row['asset_code'] for row in body['schedule']['rows']] == ['VAN-009']


def test_dashboard_and_stats(logged_in_client):
    create_asset(logged_in_client)

    body = logged_in_client.get('/api/dashboard?as_of_date=2024-01-01').get_json()
    assert body['summary']['total_assets'] == 1
    assert body['summary']['total_value'] == pytest.approx(9400)
    assert len(body['value_trend']) == 12
    assert body['category_breakdown'][0]['name'] == 'IT Equipment'
    assert body['recent_assets'][0]['asset_code'] == 'LAP-001'

    stats = logged_in_client.get('/api/assets/stats').get_json()['stats']
    assert stats['active_assets'] == 1

    trend = logged_in_client.get('/api/dashboard/value_trend?as_of_date=2024-01-01&months=6').get_json()
    assert len(trend['value_trend']) == 6


def test_category_crud(logged_in_client):
    categories = logged_in_client.get('/api/categories').get_json()['categories']
    assert 'IT Equipment' in [c['name'] for c in categories]

    response = logged_in_client.post('/api/categories', json={'name': 'Tools'})
    assert response.status_code == 201
    category_id = response.get_json()['category_id']

    assert logged_in_client.post('/api/categories', json={'name': 'Tools'}).status_code == 409

    create_asset(logged_in_client, category='Tools')
    assert logged_in_client.put(f'/api/categories/{category_id}', json={'name': 'Hand Tools'}).status_code == 200
    assets = logged_in_client.get('/api/assets').get_json()['assets']
    assert assets[0]['category'] == 'Hand Tools'

    assert logged_in_client.delete(f'/api/categories/{category_id}').status_code == 200
    assert logged_in_client.delete(f'/api/categories/{category_id}').status_code == 404


def test_maintenance_tasks(logged_in_client):
    asset = create_asset(logged_in_client)
    soon = (date.today() + timedelta(days=3)).isoformat()
    later = (date.today() + timedelta(days=30)).isoformat()

    response = logged_in_client.post('/api/maintenance', json={
        'asset_id': asset['asset_id'], 'task': 'Replace battery', 'due_date': later, 'priority': 'high',
    })
    assert response.status_code == 201
    assert response.get_json()['task']['asset_name'] == 'Dell Latitude 7440'

    response = logged_in_client.post('/api/maintenance', json={'task': 'Service aircon', 'due_date': soon})
    task_id = response.get_json()['task_id']

    upcoming = logged_in_client.get('/api/maintenance/upcoming').get_json()['tasks']
    assert [t['task'] for t in upcoming] == ['Service aircon', 'Replace battery']
    assert upcoming[0]['days_until_due'] == 3

    response = logged_in_client.post(f'/api/maintenance/{task_id}/complete')
    assert response.get_json()['task']['completed'] == 1
    assert response.get_json()['task']['completed_at'] is not None

    upcoming = logged_in_client.get('/api/maintenance/upcoming').get_json()['tasks']
    assert [t['task'] for t in upcoming] == ['Replace battery']

    assert logged_in_client.post('/api/maintenance', json={'task': 'x', 'due_date': soon,
                                                           'priority': 'urgent'}).status_code == 400
    assert logged_in_client.delete(f'/api/maintenance/{task_id}').status_code == 200
    assert len(logged_in_client.get('/api/maintenance').get_json()['tasks']) == 1


@pytest.mark.parametrize('asset_id', ['abc', '12x', [1]])
def test_maintenance_task_with_malformed_asset_id(logged_in_client, asset_id):
    due = (date.today() + timedelta(days=7)).isoformat()
    response = logged_in_client.post('/api/maintenance', json={
        'asset_id': asset_id, 'task': 'Replace battery', 'due_date': due,
    })
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Asset ID must be a number'

    task_id = logged_in_client.post('/api/maintenance', json={
        'task': 'Service aircon', 'due_date': due,
    }).get_json()['task_id']
    response = logged_in_client.put(f'/api/maintenance/{task_id}', json={'asset_id': asset_id})
    assert response.status_code == 400


def test_health(client):
    assert client.get('/health').get_json() == {'status': 'ok'}
