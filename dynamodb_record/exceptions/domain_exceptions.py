"""
Domain-Specific Exceptions for dynamodb_record

Every exception raised by the library itself extends DynamoDBRecordError.
Remote failures of the transactional calls are NOT wrapped: the botocore
ClientError reaches the caller exactly as the client raised it.

Organized by category:
1. Validation Errors (raised before any network call)
2. Resource Not Found Errors
3. Infrastructure Errors
"""

from typing import Any, Dict, Optional

from .base import DynamoDBRecordError


# =============================================================================
# Validation Errors
# =============================================================================

class ValidationError(DynamoDBRecordError):
    """Raised when caller-supplied data is invalid.

    Used for:
    - Unparseable marshaler input
    - Invalid table provisioning parameters (billing mode, throughput)
    - Malformed transaction batches (see subclasses)
    """

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        """Initialize validation error.

        Args:
            message: Human-readable error message
            errors: Dictionary of field-level validation errors
            original_error: The original exception that caused this error
        """
        self.errors = errors or {}
        context = {}
        if self.errors:
            context['validation_errors'] = self.errors
        super().__init__(message, original_error, context)


class InvalidTransactItem(ValidationError):
    """Raised when a transact write entry cannot be resolved to exactly one operation."""


class TransactionalSaveConditionCollision(ValidationError):
    """Raised when a save of a new record also carries an explicit condition expression.

    A save that resolves to a put is already guarded by an attribute_not_exists
    condition on the key attributes. Use a put entry and write the existence
    check into your own condition expression instead.
    """


class ExpressionAttributeCollision(ValidationError):
    """Raised when a supplied placeholder token clashes with a generated one."""

    def __init__(self, message: str, tokens: Optional[list] = None):
        self.tokens = list(tokens or [])
        super().__init__(message, {'tokens': self.tokens})


class TypeMismatch(ValidationError):
    """Raised when a marshaler is asked to format a value of the wrong type."""

    def __init__(self, message: str, expected: Optional[type] = None, actual: Optional[type] = None):
        self.expected = expected
        self.actual = actual
        errors = {}
        if expected is not None:
            errors['expected'] = expected.__name__
        if actual is not None:
            errors['actual'] = actual.__name__
        super().__init__(message, errors)


class InvalidModel(ValidationError):
    """Raised when a model class lacks usable table metadata."""


# =============================================================================
# Resource Not Found Errors
# =============================================================================

class NotFoundError(DynamoDBRecordError):
    """Raised when a DynamoDB resource (table, index) is not found."""

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_name: Optional[str] = None, original_error: Optional[Exception] = None):
        """Initialize not found error.

        Args:
            message: Human-readable error message
            resource_type: Type of resource not found (e.g., 'table')
            resource_name: Name of the resource not found
            original_error: The original exception that caused this error
        """
        self.resource_type = resource_type
        self.resource_name = resource_name
        context = {}
        if resource_type:
            context['resource_type'] = resource_type
        if resource_name:
            context['resource_name'] = resource_name
        super().__init__(message, original_error, context)


class TableDoesNotExist(NotFoundError):
    """Raised by table provisioning calls when the model's table is missing."""

    def __init__(self, table_name: str, original_error: Optional[Exception] = None):
        super().__init__(
            f"Table '{table_name}' does not exist",
            resource_type='table',
            resource_name=table_name,
            original_error=original_error,
        )


# =============================================================================
# Infrastructure Errors
# =============================================================================

class ConnectionError(DynamoDBRecordError):
    """Raised when a DynamoDB client cannot be created.

    Used for:
    - Invalid endpoint configurations
    - Session/credential resolution failures
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, original_error, context)
