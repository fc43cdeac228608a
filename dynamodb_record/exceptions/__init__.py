# Base exception class
from .base import DynamoDBRecordError

from .domain_exceptions import (
    ValidationError,
    InvalidTransactItem,
    TransactionalSaveConditionCollision,
    ExpressionAttributeCollision,
    TypeMismatch,
    InvalidModel,
    NotFoundError,
    TableDoesNotExist,
    ConnectionError,
)

__all__ = [
    # Base exception
    "DynamoDBRecordError",

    # Domain exceptions (alphabetically ordered)
    "ConnectionError",
    "ExpressionAttributeCollision",
    "InvalidModel",
    "InvalidTransactItem",
    "NotFoundError",
    "TableDoesNotExist",
    "TransactionalSaveConditionCollision",
    "TypeMismatch",
    "ValidationError",
]
