#!/usr/bin/env python3
"""
Test depreciation schedule generation, totals and list filtering
"""
from datetime import date

import pytest

from asset_application.asset_accounting.core.filters import filter_assets
from asset_application.asset_accounting.core.models import Asset, ScheduleFilters
from asset_application.asset_accounting.schedule.generator import (
    available_categories,
    available_months,
    generate_schedule,
)

AS_OF = date(2024, 1, 1)


def make_assets():
    return [
        Asset(asset_id=1, asset_code='LAP-001', name='Dell Laptop', category='IT Equipment',
              purchase_date=date(2023, 1, 1), purchase_price=12000, useful_life=5),
        Asset(asset_id=2, asset_code='DSK-002', name='Standing Desk', category='Furniture',
              purchase_date=date(2023, 6, 15), purchase_price=2400, useful_life=10),
        Asset(asset_id=3, asset_code='VAN-003', name='Delivery Van', category='Vehicles',
              purchase_date=date(2021, 1, 10), purchase_price=800, useful_life=5,
              status='disposed', current_value=100),
        Asset(asset_id=4, asset_code='LAP-004', name='MacBook Pro', category='IT Equipment',
              purchase_date=date(2023, 6, 2), purchase_price=6000, useful_life=None),
    ]


def test_schedule_rows_are_numbered_in_input_order():
    schedule = generate_schedule(make_assets(), ScheduleFilters(as_of_date=AS_OF))

    assert [row.no for row in schedule.rows] == [1, 2, 3, 4]
    assert [row.asset_code for row in schedule.rows] == ['LAP-001', 'DSK-002', 'VAN-003', 'LAP-004']
    assert schedule.rows[0].record.net_book_value == pytest.approx(9400)


def test_totals_exclude_disposed_rows_except_disposal_columns():
    schedule = generate_schedule(make_assets(), ScheduleFilters(as_of_date=AS_OF))
    totals = schedule.totals

    # Van is disposed: its cost stays out of the cost total but its disposal counts
    assert totals['cost_final_balance'] == pytest.approx(12000 + 2400 + 6000)
    assert totals['disposal'] == pytest.approx(100)
    assert totals['disposal_depreciation'] == 0

    active_rows = [row for row in schedule.rows if not row.record.is_disposed]
    assert totals['net_book_value'] == pytest.approx(
        round(sum(row.record.net_book_value for row in active_rows), 2))
    assert totals['closing_depreciation'] == pytest.approx(
        round(sum(row.record.closing_depreciation for row in active_rows), 2))


def test_category_filter():
    schedule = generate_schedule(make_assets(), ScheduleFilters(category='IT Equipment', as_of_date=AS_OF))
    assert [row.asset_code for row in schedule.rows] == ['LAP-001', 'LAP-004']
    assert [row.no for row in schedule.rows] == [1, 2]


def test_all_categories_sentinel_means_no_filter():
    schedule = generate_schedule(make_assets(), ScheduleFilters(category='All Categories', as_of_date=AS_OF))
    assert len(schedule.rows) == 4


def test_month_filter_matches_purchase_month():
    schedule = generate_schedule(make_assets(), ScheduleFilters(month='2023-06', as_of_date=AS_OF))
    assert [row.asset_code for row in schedule.rows] == ['DSK-002', 'LAP-004']


def test_schedule_serializes_rows_with_depreciation_columns():
    payload = generate_schedule(make_assets(), ScheduleFilters(as_of_date=AS_OF)).to_dict()

    assert payload['row_count'] == 4
    assert payload['as_of_date'] == '2024-01-01'
    first = payload['rows'][0]
    assert first['no'] == 1
    assert first['asset_name'] == 'Dell Laptop'
    assert first['purchase_date'] == '2023-01-01'
    assert first['monthly_depreciation'] == pytest.approx(200)


def test_available_months_newest_first():
    assert available_months(make_assets()) == ['2023-06', '2023-01', '2021-01']


def test_available_categories():
    assert available_categories(make_assets()) == ['Furniture', 'IT Equipment', 'Vehicles']


def test_filter_assets_search_is_case_insensitive_on_name_and_code():
    assets = make_assets()
    assert [a.asset_code for a in filter_assets(assets, search='laptop')] == ['LAP-001']
    assert [a.asset_code for a in filter_assets(assets, search='lap-')] == ['LAP-001', 'LAP-004']


def test_filter_assets_status_and_category():
    assets = make_assets()
    assert [a.asset_code for a in filter_assets(assets, status='disposed')] == ['VAN-003']
    assert len(filter_assets(assets, status='All Status', category='All Categories')) == 4
    assert filter_assets(assets, category='Machinery') == []
