# backend/routes/work_orders.py
from flask import Blueprint, request, jsonify, current_app
from flask_login import login_required, current_user
import logging

from models import db, Customer, Vehicle, WorkOrder
from models.work_order import ORDER_STATUSES, ORDER_PRIORITIES
from middleware.auth import admin_required, active_user_required
from routes import error_response, parse_int, session_payload
from services.aggregation import order_labor_summary
from services.cost import round_money, session_summary
from services.errors import ServiceError, ValidationError
from services.numbering import next_document_number
from services.quote_service import generate_quote_from_order
from services.time_utils import utcnow, parse_datetime
from services.timer_service import start_timer, stop_timer, get_active_timer

work_orders_bp = Blueprint('work_orders', __name__)
logger = logging.getLogger(__name__)

CLOSED_STATUSES = ('completed', 'delivered')


def _present_labor(summary):
    result = dict(summary)
    result['total_hours'] = round_money(summary['total_hours'])
    result['total_cost'] = round_money(summary['total_cost'])
    result['employees'] = [
        {**row,
         'total_hours': round_money(row['total_hours']),
         'hourly_rate': round_money(row['hourly_rate']),
         'total_cost': round_money(row['total_cost'])}
        for row in summary['employees']
    ]
    return result


def _get_order_or_404(order_id):
    order = db.session.get(WorkOrder, order_id)
    if not order:
        return None, (jsonify({'error': 'Work order not found', 'code': 'NOT_FOUND'}), 404)
    return order, None


@work_orders_bp.route('', methods=['GET'])
@login_required
def get_work_orders():
    """List work orders, newest first, optionally filtered by status"""
    status = request.args.get('status')
    if status and status not in ORDER_STATUSES:
        return jsonify({'error': f"Invalid status '{status}'", 'code': 'VALIDATION_ERROR'}), 400

    try:
        query = WorkOrder.query
        if status:
            query = query.filter(WorkOrder.status == status)
        orders = query.order_by(WorkOrder.created_at.desc(), WorkOrder.id.desc()).all()
        return jsonify([order.to_dict() for order in orders])
    except Exception as e:
        logger.error(f"Error retrieving work orders: {str(e)}")
        return jsonify({'error': 'Failed to retrieve work orders'}), 500


@work_orders_bp.route('', methods=['POST'])
@login_required
def create_work_order():
    """Open a new work order with a generated order number"""
    data = request.get_json(silent=True) or {}

    try:
        customer_id = parse_int(data.get('customer_id'), 'customer_id')
        vehicle_id = parse_int(data.get('vehicle_id'), 'vehicle_id')
        description = (data.get('description') or '').strip()
        if not customer_id or not description:
            raise ValidationError('customer_id and description are required')

        customer = db.session.get(Customer, customer_id)
        if not customer:
            return jsonify({'error': 'Customer not found', 'code': 'NOT_FOUND'}), 404

        if vehicle_id:
            vehicle = db.session.get(Vehicle, vehicle_id)
            if not vehicle:
                return jsonify({'error': 'Vehicle not found', 'code': 'NOT_FOUND'}), 404
            if vehicle.customer_id != customer.id:
                raise ValidationError('Vehicle does not belong to this customer')

        priority = data.get('priority', 'medium')
        if priority not in ORDER_PRIORITIES:
            raise ValidationError(f"Priority must be one of: {', '.join(ORDER_PRIORITIES)}")

        try:
            estimated_cost = float(data['estimated_cost']) if data.get('estimated_cost') not in (None, '') else None
        except (TypeError, ValueError):
            raise ValidationError('estimated_cost must be a number')

        try:
            start_date = parse_datetime(data.get('start_date')) or utcnow()
        except ValueError as e:
            raise ValidationError(str(e))

        order_number = next_document_number(current_app.config.get('ORDER_NUMBER_PREFIX', 'ORD'),
                                            WorkOrder.order_number, year=start_date.year)
        order = WorkOrder(
            order_number=order_number,
            customer_id=customer.id,
            vehicle_id=vehicle_id,
            description=description,
            status='waiting',
            priority=priority,
            start_date=start_date,
            estimated_cost=estimated_cost,
            notes=(data.get('notes') or '').strip() or None
        )
        db.session.add(order)
        db.session.commit()
    except ServiceError as e:
        db.session.rollback()
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error creating work order: {str(e)}")
        return jsonify({'error': 'Failed to create work order'}), 500

    logger.info(f"Work order {order.order_number} created by {current_user.username}")
    return jsonify(order.to_dict()), 201


@work_orders_bp.route('/<int:order_id>', methods=['GET'])
@login_required
def get_work_order(order_id):
    """Get a work order with its labor summary"""
    order, error = _get_order_or_404(order_id)
    if error:
        return error

    result = order.to_dict()
    result['labor'] = _present_labor(order_labor_summary(order.id))
    return jsonify(result)


@work_orders_bp.route('/<int:order_id>', methods=['PUT'])
@login_required
def update_work_order(order_id):
    """Update status, priority, description or notes of a work order"""
    order, error = _get_order_or_404(order_id)
    if error:
        return error

    data = request.get_json(silent=True) or {}

    if 'status' in data:
        status = data['status']
        if status not in ORDER_STATUSES:
            return jsonify({'error': f"Status must be one of: {', '.join(ORDER_STATUSES)}",
                            'code': 'VALIDATION_ERROR'}), 400
        if status != order.status:
            logger.info(f"Work order {order.order_number} status {order.status} -> {status}")
        order.status = status
        if status in CLOSED_STATUSES and not order.end_date:
            order.end_date = utcnow()

    if 'priority' in data:
        if data['priority'] not in ORDER_PRIORITIES:
            return jsonify({'error': f"Priority must be one of: {', '.join(ORDER_PRIORITIES)}",
                            'code': 'VALIDATION_ERROR'}), 400
        order.priority = data['priority']

    if 'description' in data:
        description = (data['description'] or '').strip()
        if not description:
            return jsonify({'error': 'Description cannot be empty', 'code': 'VALIDATION_ERROR'}), 400
        order.description = description

    if 'notes' in data:
        order.notes = (data['notes'] or '').strip() or None

    if 'estimated_cost' in data:
        try:
            order.estimated_cost = float(data['estimated_cost']) if data['estimated_cost'] not in (None, '') else None
        except (TypeError, ValueError):
            return jsonify({'error': 'estimated_cost must be a number', 'code': 'VALIDATION_ERROR'}), 400

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating work order {order_id}: {str(e)}")
        return jsonify({'error': 'Failed to update work order'}), 500

    return jsonify(order.to_dict())


@work_orders_bp.route('/<int:order_id>/timer', methods=['POST'])
@login_required
@active_user_required
def start_order_timer(order_id):
    """Start the logged-in employee's timer on this work order"""
    try:
        session = start_timer(current_user.id, order_id)
        summary = session_summary(session)
        return jsonify({
            'message': 'Timer started',
            'session': session_payload(session, summary)
        }), 201
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error starting timer on work order {order_id}: {str(e)}")
        return jsonify({'error': 'Failed to start timer'}), 500


@work_orders_bp.route('/<int:order_id>/timer', methods=['PATCH'])
@login_required
def stop_order_timer(order_id):
    """Stop the logged-in employee's timer on this work order"""
    try:
        session, summary = stop_timer(current_user.id, order_id)
        payload = session_payload(session, summary)
        return jsonify({
            'message': 'Timer stopped',
            'session': payload,
            'summary': payload['summary']
        })
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error stopping timer on work order {order_id}: {str(e)}")
        return jsonify({'error': 'Failed to stop timer'}), 500


@work_orders_bp.route('/<int:order_id>/timer', methods=['GET'])
@login_required
def get_order_timer(order_id):
    """The logged-in employee's running timer on this work order, if any"""
    try:
        session, summary = get_active_timer(current_user.id, order_id)
    except ServiceError as e:
        return error_response(e)

    if not session:
        return jsonify({'active': False, 'session': None})
    return jsonify({'active': True, 'session': session_payload(session, summary)})


@work_orders_bp.route('/<int:order_id>/quote', methods=['POST'])
@login_required
@admin_required
def create_quote_from_order(order_id):
    """Generate a draft quote from the order's completed labor"""
    try:
        quote, summary = generate_quote_from_order(order_id)
    except ServiceError as e:
        return error_response(e)
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error generating quote for work order {order_id}: {str(e)}")
        return jsonify({'error': 'Failed to generate quote'}), 500

    logger.info(f"Quote {quote.quote_number} generated by {current_user.username}")
    return jsonify({
        'message': 'Quote generated',
        'quote': quote.to_dict(),
        'summary': {
            'total_hours': round_money(summary['total_hours']),
            'total_cost': round_money(summary['total_cost']),
            'session_count': summary['session_count'],
            'employees': [
                {**row,
                 'hours': round_money(row['hours']),
                 'hourly_rate': round_money(row['hourly_rate']),
                 'total': round_money(row['total'])}
                for row in summary['employees']
            ]
        }
    }), 201
