"""
dynamodb_record

An object-to-item mapper for Amazon DynamoDB built on boto3 and Pydantic:

- Record models with declarative table metadata, dirty tracking and an
  explicit lifecycle (new / clean / dirty / destroyed)
- Attribute marshalers for date and datetime values
- Transactional multi-item reads (transact_find) and writes (transact_write)
- Table provisioning from model metadata (TableMigration)
"""

from .config import DynamoDBConfig
from .exceptions import (
    ConnectionError,
    DynamoDBRecordError,
    ExpressionAttributeCollision,
    InvalidModel,
    InvalidTransactItem,
    NotFoundError,
    TableDoesNotExist,
    TransactionalSaveConditionCollision,
    TypeMismatch,
    ValidationError,
)
from .marshalers import (
    DateMarshaler,
    Iso8601Formatter,
    TimeMarshaler,
)
from .models import (
    Record,
    RecordState,
    TableMeta,
)
from .core import (
    CheckExpression,
    ClientConfiguration,
    configure_client,
    create_dynamodb_client,
)
from .core.table_migration import TableMigration
from .handlers.transactions import (
    MissingItem,
    TransactCheck,
    TransactDelete,
    TransactFind,
    TransactFindResult,
    TransactPut,
    TransactSave,
    TransactUpdate,
    TransactionReadApi,
    TransactionWriteApi,
    plan_transact_write,
    transact_find,
    transact_write,
)

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "DynamoDBConfig",
    "ClientConfiguration",
    "configure_client",
    "create_dynamodb_client",

    # Exceptions
    "ConnectionError",
    "DynamoDBRecordError",
    "ExpressionAttributeCollision",
    "InvalidModel",
    "InvalidTransactItem",
    "NotFoundError",
    "TableDoesNotExist",
    "TransactionalSaveConditionCollision",
    "TypeMismatch",
    "ValidationError",

    # Marshalers
    "DateMarshaler",
    "Iso8601Formatter",
    "TimeMarshaler",

    # Records
    "Record",
    "RecordState",
    "TableMeta",
    "CheckExpression",

    # Provisioning
    "TableMigration",

    # Transactions
    "MissingItem",
    "TransactCheck",
    "TransactDelete",
    "TransactFind",
    "TransactFindResult",
    "TransactPut",
    "TransactSave",
    "TransactUpdate",
    "TransactionReadApi",
    "TransactionWriteApi",
    "plan_transact_write",
    "transact_find",
    "transact_write",
]
