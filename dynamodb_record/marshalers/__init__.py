"""
Attribute marshalers.

A marshaler converts between a domain value and the value stored in
DynamoDB. Every marshaler exposes the same two-method contract:

- ``type_cast(raw) -> domain value | None``
- ``serialize(raw) -> stored value | None``

Attach one to a record field with ``typing.Annotated``::

    updated_at: Annotated[Optional[datetime], TimeMarshaler(use_local_time=True)] = None
"""

from .date_marshaler import DateMarshaler
from .formatters import Iso8601Formatter
from .time_marshaler import TimeMarshaler

__all__ = [
    "DateMarshaler",
    "Iso8601Formatter",
    "TimeMarshaler",
]
