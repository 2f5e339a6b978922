"""
Pytest configuration and fixtures for the salon backend.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest

from salon import create_app, db
from salon.cli import seed_all
from salon.config import TestingConfig
from salon.models.service import Service, MembershipPlan
from salon.models.stylist import Stylist, Staff

ADMIN_EMAIL = 'admin@example.com'
ADMIN_PASSWORD = 'admin-pass-123'

# Tomorrow at 10:00, so bookings are recent enough to count as activity
BASE_SLOT = (datetime.utcnow() + timedelta(days=1)).replace(hour=10, minute=0, second=0, microsecond=0)


def slot(hours=0):
    return (BASE_SLOT + timedelta(hours=hours)).strftime('%Y-%m-%dT%H:%M:%S')


@pytest.fixture
def app():
    """
    Fresh application on an in-memory database, seeded with the built-in
    roles and a super admin. No app context is left pushed so every test
    request gets its own session, as in production.
    """
    app = create_app(TestingConfig)
    with app.app_context():
        seed_all('Test Admin', ADMIN_EMAIL, ADMIN_PASSWORD)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def anon_client(app):
    return app.test_client()


@pytest.fixture
def client(app):
    """Test client logged in as the seeded super admin."""
    client = app.test_client()
    response = client.post('/api/auth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return client


@pytest.fixture
def catalog(app):
    """Two stylists, two services, a membership plan and a salaried staff member."""
    with app.app_context():
        priya = Stylist(name='Priya')
        marco = Stylist(name='Marco')
        haircut = Service(name='Haircut', price=Decimal('500.00'), duration_minutes=30)
        color = Service(name='Hair Color', price=Decimal('1500.00'), duration_minutes=90)
        gold = MembershipPlan(name='Gold Membership', price=Decimal('3000.00'), duration_days=365,
                              benefits=['10% off services'], discount_percentage_services=10)
        asha = Staff(name='Asha', email='asha@example.com', position='Stylist', salary=Decimal('30000.00'))
        db.session.add_all([priya, marco, haircut, color, gold, asha])
        db.session.commit()
        return SimpleNamespace(
            stylist_id=priya.id,
            other_stylist_id=marco.id,
            haircut_id=haircut.id,
            color_id=color.id,
            plan_id=gold.id,
            staff_id=asha.id,
        )


@pytest.fixture
def book(client, catalog):
    """Book an appointment for a (new or existing) customer and return its JSON data."""
    def _book(hours=0, service_ids=None, stylist_id=None, phone='555-010-2030',
              name='Ana Silva', email='ana@example.com'):
        response = client.post('/api/appointment', json={
            'name': name,
            'email': email,
            'phone': phone,
            'stylist_id': stylist_id or catalog.stylist_id,
            'service_ids': service_ids or [catalog.haircut_id],
            'start_time': slot(hours),
        })
        assert response.status_code == 201, response.get_json()
        return response.get_json()['data']
    return _book


@pytest.fixture
def service_items(catalog):
    """Two service lines and one product line."""
    return [
        {'item_type': 'service', 'item_id': catalog.haircut_id, 'name': 'Haircut', 'unit_price': 500},
        {'item_type': 'service', 'item_id': catalog.color_id, 'name': 'Hair Color', 'unit_price': 1500},
        {'item_type': 'product', 'name': 'Shampoo', 'unit_price': 250, 'quantity': 2},
    ]
