# backend/models/__init__.py

from .base import db

# Import order matters for relationship resolution.

# 1. Foundational Models
from .employee import Employee
from .customer import Customer, Vehicle

# 2. Core Business Logic Models
from .work_order import WorkOrder, WorkSession
from .quote import Quote, QuoteLineItem
from .counter import DocumentCounter

__all__ = [
    'db',
    'Employee',
    'Customer',
    'Vehicle',
    'WorkOrder',
    'WorkSession',
    'Quote',
    'QuoteLineItem',
    'DocumentCounter',
]
