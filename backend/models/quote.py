# backend/models/quote.py

from datetime import datetime
from .base import db

QUOTE_STATUSES = ('draft', 'sent', 'accepted', 'rejected', 'expired')


class Quote(db.Model):
    __tablename__ = 'quotes'

    id = db.Column(db.Integer, primary_key=True)
    quote_number = db.Column(db.String(20), unique=True, nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False)
    vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=True)
    work_order_id = db.Column(db.Integer, db.ForeignKey('work_orders.id'), nullable=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    status = db.Column(db.String(20), default='draft', nullable=False)
    total_amount = db.Column(db.Float, default=0.0, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=True)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = db.relationship('Customer', backref=db.backref('quotes', lazy='dynamic'))
    vehicle = db.relationship('Vehicle')
    work_order = db.relationship('WorkOrder', backref=db.backref('quotes', lazy='dynamic'))
    line_items = db.relationship('QuoteLineItem', backref='quote', lazy=True,
                                 cascade="all, delete-orphan", order_by='QuoteLineItem.id')

    def to_dict(self):
        """Serializes the Quote with its line items."""
        return {
            'id': self.id,
            'quote_number': self.quote_number,
            'customer_id': self.customer_id,
            'customer_name': self.customer.get_full_name() if self.customer else None,
            'vehicle_id': self.vehicle_id,
            'work_order_id': self.work_order_id,
            'title': self.title,
            'description': self.description,
            'status': self.status,
            'total_amount': round(self.total_amount or 0.0, 2),
            'expires_at': self.expires_at.isoformat() if self.expires_at else None,
            'notes': self.notes,
            'line_items': [item.to_dict() for item in self.line_items],
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class QuoteLineItem(db.Model):
    __tablename__ = 'quote_line_items'

    id = db.Column(db.Integer, primary_key=True)
    quote_id = db.Column(db.Integer, db.ForeignKey('quotes.id'), nullable=False)
    description = db.Column(db.String(200), nullable=False)
    quantity = db.Column(db.Float, nullable=False, default=1.0)
    unit_price = db.Column(db.Float, nullable=False, default=0.0)
    vat_rate = db.Column(db.Float, nullable=False, default=22.0)
    total = db.Column(db.Float, nullable=False, default=0.0)

    def to_dict(self):
        return {
            'id': self.id,
            'description': self.description,
            'quantity': round(self.quantity, 2),
            'unit_price': round(self.unit_price, 2),
            'vat_rate': self.vat_rate,
            'total': round(self.total, 2)
        }
