# backend/models/counter.py

from .base import db


class DocumentCounter(db.Model):
    """Per-year sequence backing quote and work order numbers."""
    __tablename__ = 'document_counters'

    id = db.Column(db.Integer, primary_key=True)
    prefix = db.Column(db.String(10), nullable=False)
    year = db.Column(db.Integer, nullable=False)
    last_value = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (db.UniqueConstraint('prefix', 'year', name='_prefix_year_uc'),)
