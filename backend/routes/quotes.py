# backend/routes/quotes.py
from flask import Blueprint, request, jsonify
from flask_login import login_required, current_user
import logging

from models import db, Quote
from models.quote import QUOTE_STATUSES
from middleware.auth import admin_required

quotes_bp = Blueprint('quotes', __name__)
logger = logging.getLogger(__name__)


@quotes_bp.route('', methods=['GET'])
@login_required
def get_quotes():
    """List quotes, newest first, optionally filtered by status"""
    status = request.args.get('status')
    if status and status not in QUOTE_STATUSES:
        return jsonify({'error': f"Invalid status '{status}'", 'code': 'VALIDATION_ERROR'}), 400

    try:
        query = Quote.query
        if status:
            query = query.filter(Quote.status == status)
        quotes = query.order_by(Quote.created_at.desc(), Quote.id.desc()).all()
        return jsonify([quote.to_dict() for quote in quotes])
    except Exception as e:
        logger.error(f"Error retrieving quotes: {str(e)}")
        return jsonify({'error': 'Failed to retrieve quotes'}), 500


@quotes_bp.route('/<int:quote_id>', methods=['GET'])
@login_required
def get_quote(quote_id):
    """Get a quote with its line items"""
    quote = db.session.get(Quote, quote_id)
    if not quote:
        return jsonify({'error': 'Quote not found', 'code': 'NOT_FOUND'}), 404
    return jsonify(quote.to_dict())


@quotes_bp.route('/<int:quote_id>', methods=['PUT'])
@login_required
@admin_required
def update_quote(quote_id):
    """Change the status or notes of a quote"""
    quote = db.session.get(Quote, quote_id)
    if not quote:
        return jsonify({'error': 'Quote not found', 'code': 'NOT_FOUND'}), 404

    data = request.get_json(silent=True) or {}

    if 'status' in data:
        if data['status'] not in QUOTE_STATUSES:
            return jsonify({'error': f"Status must be one of: {', '.join(QUOTE_STATUSES)}",
                            'code': 'VALIDATION_ERROR'}), 400
        if data['status'] != quote.status:
            logger.info(f"Quote {quote.quote_number} status {quote.status} -> {data['status']} "
                        f"by {current_user.username}")
        quote.status = data['status']

    if 'notes' in data:
        quote.notes = data['notes']

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Error updating quote {quote_id}: {str(e)}")
        return jsonify({'error': 'Failed to update quote'}), 500

    return jsonify(quote.to_dict())
