"""
Tests for customer management and the loyalty points ledger.
"""

from datetime import datetime

import pytest

from salon import db
from salon.models.appointment import Appointment
from salon.models.customer import Customer, normalize_phone, normalize_email, phone_has_enough_digits, months_ago


def create_customer(client, **overrides):
    payload = {'name': 'Ana Silva', 'email': 'ana@example.com', 'phone': '555-010-2030'}
    payload.update(overrides)
    return client.post('/api/customer', json=payload)


class TestNormalization:

    @pytest.mark.parametrize('raw, expected', [
        ('555-010-2030', '5550102030'),
        ('+1 (555) 010 2030', '15550102030'),
        ('', None),
        (None, None),
    ])
    def test_normalize_phone(self, raw, expected):
        assert normalize_phone(raw) == expected

    def test_normalize_email(self):
        assert normalize_email('  Ana@Example.COM ') == 'ana@example.com'
        assert normalize_email('') is None

    @pytest.mark.parametrize('raw, expected', [
        ('555-0102', True),
        ('12', False),
        ('', False),
    ])
    def test_phone_has_enough_digits(self, raw, expected):
        assert phone_has_enough_digits(raw) is expected

    @pytest.mark.parametrize('moment, expected', [
        (datetime(2026, 3, 31, 9, 30), datetime(2026, 1, 31, 9, 30)),
        (datetime(2026, 4, 30), datetime(2026, 2, 28)),
        (datetime(2026, 1, 15), datetime(2025, 11, 15)),
    ])
    def test_two_calendar_months_back(self, moment, expected):
        assert months_ago(moment, 2) == expected

    def test_activity_cutoff_follows_calendar_months(self, app):
        with app.app_context():
            customer = Customer(name='Ana', email='ana@example.com', phone_number='5550102030')
            db.session.add(customer)
            db.session.commit()
            now = datetime(2026, 3, 31, 12, 0)
            customer.created_at = datetime(2026, 1, 31, 12, 0)
            assert customer.activity_status(now) == 'New'
            customer.created_at = datetime(2026, 1, 30, 12, 0)
            assert customer.activity_status(now) == 'Inactive'


class TestCustomerCrud:
    """Test customer creation, update and lookup."""

    def test_create_customer(self, client):
        response = create_customer(client, email=' Ana@Example.com')
        assert response.status_code == 201
        data = response.get_json()['data']
        assert data['email'] == 'ana@example.com'
        assert data['phone_number'] == '5550102030'
        assert data['loyalty_points'] == 0

    def test_duplicate_phone_fails(self, client):
        first = create_customer(client).get_json()['data']
        response = create_customer(client, email='other@example.com', phone='(555) 010-2030')
        assert response.status_code == 409
        body = response.get_json()
        assert body['success'] is False
        assert body['exists'] is True
        assert body['customer_id'] == first['id']

    def test_duplicate_email_fails(self, client):
        create_customer(client)
        response = create_customer(client, email='ANA@example.com', phone='5551234567')
        assert response.status_code == 409

    def test_missing_fields(self, client):
        response = client.post('/api/customer', json={'name': 'Ana'})
        assert response.status_code == 400
        errors = response.get_json()['errors']
        assert 'email' in errors and 'phone' in errors

    def test_invalid_email(self, client):
        response = create_customer(client, email='not-an-email')
        assert response.status_code == 400

    def test_update_customer(self, client):
        customer = create_customer(client).get_json()['data']
        response = client.put(f"/api/customer/{customer['id']}", json={
            'name': 'Ana Maria Silva', 'email': 'ana@example.com', 'phone': '5550102030',
        })
        assert response.status_code == 200
        assert response.get_json()['data']['name'] == 'Ana Maria Silva'

    def test_update_to_taken_phone_conflicts(self, client):
        create_customer(client)
        other = create_customer(client, name='Ben', email='ben@example.com', phone='5559998888').get_json()['data']
        response = client.put(f"/api/customer/{other['id']}", json={
            'name': 'Ben', 'email': 'ben@example.com', 'phone': '555 010 2030',
        })
        assert response.status_code == 409

    def test_update_missing_customer(self, client):
        response = client.put('/api/customer/999', json={
            'name': 'Ghost', 'email': 'ghost@example.com', 'phone': '5550000000',
        })
        assert response.status_code == 404

    def test_list_is_paginated_with_status(self, client):
        for i in range(3):
            create_customer(client, name=f'Customer {i}', email=f'c{i}@example.com', phone=f'55500000{i}0')

        body = client.get('/api/customer?page=1&limit=2').get_json()
        assert len(body['data']) == 2
        assert body['pagination']['total'] == 3
        assert body['pagination']['has_next'] is True
        assert all(c['status'] == 'New' for c in body['data'])

        searched = client.get('/api/customer', query_string={'search': 'Customer 1'}).get_json()['data']
        assert [c['name'] for c in searched] == ['Customer 1']

    def test_customer_with_recent_appointment_is_active(self, client, book):
        appointment = book()
        data = client.get(f"/api/customer/{appointment['customer_id']}").get_json()['data']
        assert data['status'] == 'Active'
        assert [a['id'] for a in data['appointments']] == [appointment['id']]
        assert data['active_membership'] is None


    def test_customer_without_recent_visits_is_inactive(self, app, client):
        customer = create_customer(client).get_json()['data']
        with app.app_context():
            row = db.session.get(Customer, customer['id'])
            row.created_at = months_ago(datetime.utcnow(), 3)
            db.session.commit()

        data = client.get(f"/api/customer/{customer['id']}").get_json()['data']
        assert data['status'] == 'Inactive'

    def test_customer_whose_last_appointment_is_old_is_inactive(self, app, client, book):
        appointment = book()
        with app.app_context():
            row = db.session.get(Appointment, appointment['id'])
            shift = row.start_time - months_ago(datetime.utcnow(), 3)
            row.start_time -= shift
            row.end_time -= shift
            db.session.commit()

        listed = client.get('/api/customer').get_json()['data']
        assert [c['status'] for c in listed] == ['Inactive']


class TestCustomerSearch:
    """Test live search and the side-panel lookup."""

    def test_live_search_by_name_and_phone(self, client):
        create_customer(client)
        create_customer(client, name='Ben Okafor', email='ben@example.com', phone='5559998888')

        by_name = client.get('/api/customer/search?query=ana').get_json()['data']
        assert [c['name'] for c in by_name] == ['Ana Silva']

        by_phone = client.get('/api/customer/search?query=999').get_json()['data']
        assert [c['name'] for c in by_phone] == ['Ben Okafor']

    def test_short_query_returns_nothing(self, client):
        create_customer(client)
        assert client.get('/api/customer/search?query=a').get_json()['data'] == []

    def test_details_by_exact_phone(self, client):
        create_customer(client)
        response = client.get('/api/customer/search?query=555-010-2030&details=true')
        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['name'] == 'Ana Silva'
        assert 'loyalty_transactions' in data

    def test_details_for_unknown_phone(self, client):
        response = client.get('/api/customer/search?query=5550000000&details=true')
        assert response.status_code == 404


class TestLoyaltyPoints:
    """Test manual loyalty point adjustments."""

    def test_credit_and_debit(self, client):
        customer = create_customer(client).get_json()['data']
        url = f"/api/customer/{customer['id']}/points"

        credit = client.post(url, json={'points': 10, 'reason': 'Birthday bonus'})
        assert credit.status_code == 200
        assert credit.get_json()['data']['loyalty_points'] == 10
        assert credit.get_json()['data']['transaction']['type'] == 'Credit'
        assert credit.get_json()['data']['transaction']['reason'] == 'Manual Adjustment: Birthday bonus'

        debit = client.post(url, json={'points': -4, 'reason': 'Redeemed'})
        assert debit.get_json()['data']['loyalty_points'] == 6
        assert debit.get_json()['data']['transaction']['type'] == 'Debit'
        assert debit.get_json()['data']['transaction']['points'] == 4

        detail = client.get(f"/api/customer/{customer['id']}").get_json()['data']
        assert sorted(t['type'] for t in detail['loyalty_transactions']) == ['Credit', 'Debit']

    def test_balance_cannot_go_negative(self, client):
        customer = create_customer(client).get_json()['data']
        response = client.post(f"/api/customer/{customer['id']}/points", json={'points': -1, 'reason': 'Redeemed'})
        assert response.status_code == 400

        detail = client.get(f"/api/customer/{customer['id']}").get_json()['data']
        assert detail['loyalty_points'] == 0
        assert detail['loyalty_transactions'] == []

    @pytest.mark.parametrize('payload', [
        {'points': 0, 'reason': 'Nothing'},
        {'points': 5, 'reason': 'ok'},
        {'points': 'five', 'reason': 'Bonus'},
        {'reason': 'Bonus'},
    ])
    def test_invalid_adjustments(self, client, payload):
        customer = create_customer(client).get_json()['data']
        response = client.post(f"/api/customer/{customer['id']}/points", json=payload)
        assert response.status_code == 400

    def test_unknown_customer(self, client):
        response = client.post('/api/customer/404/points', json={'points': 5, 'reason': 'Bonus'})
        assert response.status_code == 404
