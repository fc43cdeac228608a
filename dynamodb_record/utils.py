"""
dynamodb_record Utilities

Small helpers shared by the marshalers, the record model and the table
provisioning code:

- UTC normalization of datetimes (naive values are taken as UTC)
- Conversion of plain Python values to types the boto3 resource client accepts
- Mapping of Python annotations to DynamoDB scalar attribute types
"""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional, Union, get_args, get_origin

logger = logging.getLogger(__name__)


# =============================================================================
# Timezone Utilities
# =============================================================================

def to_utc(dt: datetime) -> datetime:
    """Convert datetime to UTC.

    Naive datetimes are assumed to already be in UTC.

    Args:
        dt: Datetime to convert to UTC

    Returns:
        Datetime in UTC timezone, or None if input is None

    Examples:
        >>> dt = datetime(2024, 1, 1, 10, 0, tzinfo=timezone(timedelta(hours=-5)))
        >>> to_utc(dt)  # -> 2024-01-01 15:00:00+00:00

        >>> dt = datetime(2024, 1, 1, 10, 0)
        >>> to_utc(dt)  # -> 2024-01-01 10:00:00+00:00
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso(value: str) -> datetime:
    """Parse an ISO-8601 string, accepting a trailing 'Z' for UTC."""
    return datetime.fromisoformat(value.strip().replace('Z', '+00:00'))


# =============================================================================
# Value Conversion
# =============================================================================

def to_dynamodb_value(obj: Any) -> Any:
    """Recursively convert a Python value to a type boto3 can serialize.

    - float -> Decimal (boto3 rejects floats)
    - dict/list -> converted element-wise
    - everything else -> unchanged
    """
    if isinstance(obj, dict):
        return {k: to_dynamodb_value(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [to_dynamodb_value(item) for item in obj]
    elif isinstance(obj, bool):
        return obj
    elif isinstance(obj, float):
        return Decimal(str(obj))
    return obj


def unwrap_optional(annotation: Any) -> Any:
    """Return T for Optional[T], the annotation itself otherwise."""
    if get_origin(annotation) is Union:
        args = [arg for arg in get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def dynamodb_scalar_type(annotation: Any) -> Optional[str]:
    """Map a field annotation to a DynamoDB key attribute type ('S', 'N' or 'B').

    Returns None for annotations that cannot be used as a key attribute.
    """
    annotation = unwrap_optional(annotation)
    if annotation is bool:
        return None
    if annotation in (str, datetime, date):
        return 'S'
    if annotation in (int, float, Decimal):
        return 'N'
    if annotation in (bytes, bytearray):
        return 'B'
    return None
