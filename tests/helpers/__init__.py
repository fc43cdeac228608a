"""
Test helpers for dynamodb_record.

Sample record models shared by the unit and integration tests.
"""

from .errors import make_client_error
from .models import Customer, Order

__all__ = [
    'make_client_error',
    'Customer',
    'Order',
]
