"""
Handler Layer for dynamodb_record

The handler layer coordinates records (models/) with the DynamoDB client
(core/). It follows the CQRS split used throughout the package: each domain
has a queries.py for reads and a commands.py for writes.

Organization:
- transactions/: multi-item atomic reads (queries.py) and writes (commands.py)

Architecture:
handlers/ (this layer) -> core/ (infrastructure) -> DynamoDB
handlers/ (this layer) <- models/ (records)
"""

from .transactions import (
    TransactionReadApi,
    TransactionWriteApi,
    transact_find,
    transact_write,
)

__all__ = [
    "TransactionReadApi",
    "TransactionWriteApi",
    "transact_find",
    "transact_write",
]
