"""
Transaction APIs

Queries (transactional reads):
- transact_find / TransactionReadApi: TransactGetItems across record models

Commands (transactional writes):
- transact_write / TransactionWriteApi: TransactWriteItems from save, put,
  update, delete and check entries, with record lifecycle updates applied
  only after a successful commit
- plan_transact_write: the pure resolution step on its own

Usage:
    from dynamodb_record.handlers.transactions import transact_find, transact_write

    result = transact_find([Customer.tfind_opts(key={"customer_id": "c1"})])
    transact_write([{"save": order}, {"delete": stale_order}])
"""

from .commands import (
    LifecycleTransition,
    TransactionWriteApi,
    TransactWritePlan,
    plan_transact_write,
    transact_write,
)
from .items import (
    MissingItem,
    TransactCheck,
    TransactDelete,
    TransactFind,
    TransactFindResult,
    TransactPut,
    TransactSave,
    TransactUpdate,
    TransactWriteItem,
    parse_find_item,
    parse_transact_item,
)
from .queries import TransactionReadApi, transact_find

__all__ = [
    "LifecycleTransition",
    "MissingItem",
    "TransactCheck",
    "TransactDelete",
    "TransactFind",
    "TransactFindResult",
    "TransactPut",
    "TransactSave",
    "TransactUpdate",
    "TransactWriteItem",
    "TransactWritePlan",
    "TransactionReadApi",
    "TransactionWriteApi",
    "parse_find_item",
    "parse_transact_item",
    "plan_transact_write",
    "transact_find",
    "transact_write",
]
