# tests/conftest.py
import os
import sys
from datetime import datetime
from types import SimpleNamespace

import pytest

# backend/ holds the top-level modules (app, config, models, services, ...)
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..', 'backend'))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from app import create_app  # noqa: E402
from models import db, Employee, Customer, Vehicle, WorkOrder  # noqa: E402

PASSWORDS = {
    'admin': 'admin-password',
    'mario': 'mario-password',
    'luigi': 'luigi-password',
}


@pytest.fixture
def app():
    app = create_app('testing')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def ctx(app):
    """Application context for calling services directly."""
    with app.app_context():
        yield app


@pytest.fixture
def seed(app):
    """Three employees, one customer with a vehicle and two open work orders."""
    with app.app_context():
        admin = Employee(username='admin', email='admin@carrozzeria.test', first_name='Anna',
                         last_name='Verdi', role='admin', hourly_rate=0.0)
        mario = Employee(username='mario', email='mario@carrozzeria.test', first_name='Mario',
                         last_name='Rossi', role='employee', hourly_rate=20.0)
        luigi = Employee(username='luigi', email='luigi@carrozzeria.test', first_name='Luigi',
                         last_name='Bianchi', role='employee', hourly_rate=30.0)
        for employee in (admin, mario, luigi):
            employee.set_password(PASSWORDS[employee.username])
            db.session.add(employee)

        customer = Customer(first_name='Giulia', last_name='Neri', phone='+39 333 1234567')
        db.session.add(customer)
        db.session.flush()

        vehicle = Vehicle(customer_id=customer.id, make='Fiat', model='Panda', year=2019, plate='AB123CD')
        db.session.add(vehicle)
        db.session.flush()

        order = WorkOrder(order_number='ORD-2026-001', customer_id=customer.id, vehicle_id=vehicle.id,
                          description='Front bumper repair', status='in_progress',
                          start_date=datetime(2026, 3, 2, 8, 0))
        other_order = WorkOrder(order_number='ORD-2026-002', customer_id=customer.id, vehicle_id=vehicle.id,
                                description='Rear door respray', status='waiting',
                                start_date=datetime(2026, 3, 3, 8, 0))
        db.session.add_all([order, other_order])
        db.session.commit()

        return SimpleNamespace(
            admin_id=admin.id,
            mario_id=mario.id,
            luigi_id=luigi.id,
            customer_id=customer.id,
            vehicle_id=vehicle.id,
            order_id=order.id,
            other_order_id=other_order.id,
        )


def login(client, username):
    response = client.post('/api/auth/login', json={'username': username, 'password': PASSWORDS[username]})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin_client(app, seed):
    return login(app.test_client(), 'admin')


@pytest.fixture
def mario_client(app, seed):
    return login(app.test_client(), 'mario')
