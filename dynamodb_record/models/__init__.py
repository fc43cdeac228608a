# Base mixins
from .base import (
    DynamoDBMixin,
    MarshalerMixin,
)

# Record abstraction
from .record import (
    Record,
    RecordState,
    TableMeta,
)

__all__ = [
    "DynamoDBMixin",
    "MarshalerMixin",
    "Record",
    "RecordState",
    "TableMeta",
]
