# backend/models/work_order.py

from datetime import datetime
from .base import db

ORDER_STATUSES = ('waiting', 'in_progress', 'completed', 'delivered', 'cancelled')
ORDER_PRIORITIES = ('low', 'medium', 'high')


class WorkOrder(db.Model):
    __tablename__ = 'work_orders'

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(20), unique=True, nullable=False)
    customer_id = db.Column(db.Integer, db.ForeignKey('customers.id'), nullable=False)
    vehicle_id = db.Column(db.Integer, db.ForeignKey('vehicles.id'), nullable=True)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(db.String(20), default='waiting', nullable=False)
    priority = db.Column(db.String(10), default='medium', nullable=False)
    start_date = db.Column(db.Date, nullable=True)
    end_date = db.Column(db.Date, nullable=True)
    estimated_cost = db.Column(db.Float, default=0.0)
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    customer = db.relationship('Customer', backref=db.backref('work_orders', lazy='dynamic'))
    vehicle = db.relationship('Vehicle', backref=db.backref('work_orders', lazy='dynamic'))
    sessions = db.relationship('WorkSession', back_populates='work_order', lazy='dynamic', cascade="all, delete-orphan")

    def vehicle_label(self):
        return self.vehicle.label() if self.vehicle else None

    def to_dict(self):
        return {
            'id': self.id,
            'order_number': self.order_number,
            'customer_id': self.customer_id,
            'customer_name': self.customer.get_full_name() if self.customer else None,
            'vehicle_id': self.vehicle_id,
            'vehicle': self.vehicle_label(),
            'description': self.description,
            'status': self.status,
            'priority': self.priority,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'end_date': self.end_date.isoformat() if self.end_date else None,
            'estimated_cost': self.estimated_cost,
            'notes': self.notes,
            'created_at': self.created_at.isoformat() if self.created_at else None
        }


class WorkSession(db.Model):
    """One continuous period an employee spent on a work order."""
    __tablename__ = 'work_sessions'

    id = db.Column(db.Integer, primary_key=True)
    work_order_id = db.Column(db.Integer, db.ForeignKey('work_orders.id'), nullable=False, index=True)
    employee_id = db.Column(db.Integer, db.ForeignKey('employees.id'), nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=True)
    duration_minutes = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    work_order = db.relationship('WorkOrder', back_populates='sessions')
    employee = db.relationship('Employee', backref=db.backref('work_sessions', lazy='dynamic'))

    # At most one open timer per (employee, work order)
    __table_args__ = (
        db.Index(
            'uq_work_sessions_open_timer',
            'employee_id', 'work_order_id',
            unique=True,
            sqlite_where=db.text('end_time IS NULL'),
            postgresql_where=db.text('end_time IS NULL'),
        ),
    )

    @property
    def is_active(self):
        return self.end_time is None

    def to_dict(self):
        return {
            'id': self.id,
            'work_order_id': self.work_order_id,
            'employee_id': self.employee_id,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'duration_minutes': self.duration_minutes,
            'is_active': self.is_active,
        }

    def __repr__(self):
        return f'<WorkSession id={self.id} order={self.work_order_id} employee={self.employee_id}>'
