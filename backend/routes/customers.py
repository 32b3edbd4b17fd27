# backend/routes/customers.py
from flask import Blueprint, request, jsonify
from flask_login import login_required
from sqlalchemy.exc import IntegrityError
import logging
import re

from models import db, Customer, Vehicle

customers_bp = Blueprint('customers', __name__)
logger = logging.getLogger(__name__)

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def _clean(data, field):
    value = data.get(field)
    if value is None:
        return None
    return str(value).strip() or None


@customers_bp.route('', methods=['GET'])
@login_required
def get_customers():
    """Get all customers"""
    try:
        customers = Customer.query.order_by(Customer.last_name.asc(), Customer.first_name.asc()).all()
        return jsonify([customer.to_dict() for customer in customers])
    except Exception as e:
        logger.error(f"Error retrieving customers: {str(e)}")
        return jsonify({'error': 'Failed to retrieve customers'}), 500


@customers_bp.route('', methods=['POST'])
@login_required
def create_customer():
    """Create a new customer"""
    data = request.get_json(silent=True) or {}

    first_name = _clean(data, 'first_name')
    last_name = _clean(data, 'last_name')
    if not first_name or not last_name:
        return jsonify({'error': 'Customer first and last name are required'}), 400

    email = _clean(data, 'email')
    if email and not re.match(EMAIL_PATTERN, email):
        return jsonify({'error': 'Please enter a valid email address'}), 400

    try:
        customer = Customer(
            first_name=first_name,
            last_name=last_name,
            phone=_clean(data, 'phone'),
            email=email,
            address=_clean(data, 'address'),
            city=_clean(data, 'city'),
            postal_code=_clean(data, 'postal_code'),
            notes=_clean(data, 'notes')
        )
        db.session.add(customer)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating customer: {str(e)}")
        return jsonify({'error': 'Failed to create customer'}), 500

    logger.info(f"Created customer {customer.id}")
    return jsonify(customer.to_dict()), 201


@customers_bp.route('/<int:customer_id>', methods=['GET'])
@login_required
def get_customer(customer_id):
    """Get a specific customer with their vehicles"""
    customer = db.session.get(Customer, customer_id)
    if not customer:
        return jsonify({'error': 'Customer not found', 'code': 'NOT_FOUND'}), 404

    result = customer.to_dict()
    result['vehicles'] = [vehicle.to_dict() for vehicle in customer.vehicles]
    return jsonify(result)


@customers_bp.route('/<int:customer_id>/vehicles', methods=['GET'])
@login_required
def get_customer_vehicles(customer_id):
    """List the vehicles of a customer"""
    customer = db.session.get(Customer, customer_id)
    if not customer:
        return jsonify({'error': 'Customer not found', 'code': 'NOT_FOUND'}), 404
    return jsonify([vehicle.to_dict() for vehicle in customer.vehicles])


@customers_bp.route('/<int:customer_id>/vehicles', methods=['POST'])
@login_required
def create_vehicle(customer_id):
    """Register a vehicle for a customer"""
    customer = db.session.get(Customer, customer_id)
    if not customer:
        return jsonify({'error': 'Customer not found', 'code': 'NOT_FOUND'}), 404

    data = request.get_json(silent=True) or {}
    make = _clean(data, 'make')
    model = _clean(data, 'model')
    plate = _clean(data, 'plate')
    if not make or not model or not plate:
        return jsonify({'error': 'Make, model and plate are required'}), 400

    year = data.get('year')
    if year not in (None, ''):
        try:
            year = int(year)
        except (TypeError, ValueError):
            return jsonify({'error': 'Year must be a number'}), 400
    else:
        year = None

    try:
        vehicle = Vehicle(
            customer_id=customer.id,
            make=make,
            model=model,
            plate=plate.upper(),
            year=year,
            color=_clean(data, 'color'),
            vin=_clean(data, 'vin'),
            notes=_clean(data, 'notes')
        )
        db.session.add(vehicle)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        return jsonify({'error': f'A vehicle with plate {plate.upper()} already exists'}), 409
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating vehicle for customer {customer_id}: {str(e)}")
        return jsonify({'error': 'Failed to create vehicle'}), 500

    logger.info(f"Registered vehicle {vehicle.label()} for customer {customer_id}")
    return jsonify(vehicle.to_dict()), 201


@customers_bp.route('/vehicles/<int:vehicle_id>', methods=['GET'])
@login_required
def get_vehicle(vehicle_id):
    """Get a specific vehicle"""
    vehicle = db.session.get(Vehicle, vehicle_id)
    if not vehicle:
        return jsonify({'error': 'Vehicle not found', 'code': 'NOT_FOUND'}), 404
    return jsonify(vehicle.to_dict())
