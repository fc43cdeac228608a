"""
Transactional Write API

Turns a heterogeneous list of write entries into one TransactWriteItems call:

- save    -> Put guarded by attribute_not_exists on the key (new record)
             or Update of the dirty attributes (persisted record)
- put     -> Put of the record's full item
- update  -> Update of the record's dirty attributes, or a ConditionCheck on
             the item when nothing changed
- delete  -> Delete by the record's key
- check   -> ConditionCheck from a CheckExpression

Resolution is pure: plan_transact_write builds the request items and the
lifecycle transitions without touching any record. TransactionWriteApi runs
the one network call and applies the transitions only after it returned
successfully; on any failure every record keeps the state the caller left it
in and the error propagates unchanged.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from botocore.exceptions import BotoCoreError, ClientError

from ...core.client import ClientConfiguration, default_client_configuration
from ...core.expressions import merge_expression_attributes
from ...exceptions import InvalidTransactItem, TransactionalSaveConditionCollision
from ...models.record import Record, RecordState
from .items import (
    TransactCheck,
    TransactDelete,
    TransactPut,
    TransactSave,
    TransactUpdate,
    TransactWriteItem,
    parse_transact_item,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecycleTransition:
    """A lifecycle change to apply to a record once its commit succeeded."""
    record: Record
    target: RecordState

    def apply(self) -> None:
        if self.target is RecordState.DESTROYED:
            self.record.mark_destroyed()
        else:
            self.record.mark_clean()


@dataclass(frozen=True)
class TransactWritePlan:
    """Resolved request items plus the transitions owed after a successful commit."""
    transact_items: List[Dict[str, Any]] = field(default_factory=list)
    transitions: List[LifecycleTransition] = field(default_factory=list)

    def apply(self) -> None:
        for transition in self.transitions:
            transition.apply()


def plan_transact_write(transact_items: Iterable[Any]) -> TransactWritePlan:
    """
    Resolve write entries into TransactWriteItems request items.

    No record is modified and no network call is made.

    Args:
        transact_items: Transact* entries or their mapping form, in commit order

    Returns:
        TransactWritePlan with one request item per entry, same order

    Raises:
        InvalidTransactItem: Malformed entry, empty batch, or two entries
            targeting the same item
        TransactionalSaveConditionCollision: save of a new record with an
            explicit condition_expression
        ExpressionAttributeCollision: caller placeholders clash with generated ones
    """
    if transact_items is None:
        raise InvalidTransactItem("transact_items is required")
    entries = [parse_transact_item(entry) for entry in transact_items]
    if not entries:
        raise InvalidTransactItem("transact_items must contain at least one entry")

    request_items = []
    transitions = []
    targets = {}

    for index, entry in enumerate(entries):
        request_items.append(_resolve(entry))

        target = _target_of(entry)
        if target in targets:
            raise InvalidTransactItem(
                f"Entries {targets[target]} and {index} both target item {dict(target[1])} "
                f"in table '{target[0]}'; a transaction may touch each item only once",
                {'table_name': target[0], 'entries': [targets[target], index]},
            )
        targets[target] = index

        if isinstance(entry, TransactDelete):
            transitions.append(LifecycleTransition(entry.record, RecordState.DESTROYED))
        elif not isinstance(entry, TransactCheck):
            transitions.append(LifecycleTransition(entry.record, RecordState.CLEAN))

    return TransactWritePlan(request_items, transitions)


def _target_of(entry: TransactWriteItem) -> Tuple[str, tuple]:
    if isinstance(entry, TransactCheck):
        table_name, key = entry.check.table_name, entry.check.key
    else:
        table_name, key = entry.record.table_name(), entry.record.key_values()
    return table_name, tuple(sorted(key.items()))


def _resolve(entry: TransactWriteItem) -> Dict[str, Any]:
    if isinstance(entry, TransactSave):
        return _resolve_save(entry)
    if isinstance(entry, TransactPut):
        return _resolve_put(entry)
    if isinstance(entry, TransactUpdate):
        return _resolve_update(entry)
    if isinstance(entry, TransactDelete):
        return _resolve_delete(entry)
    return _resolve_check(entry)


def _resolve_save(entry: TransactSave) -> Dict[str, Any]:
    record = entry.record
    if not record.expect_new_item():
        logger.debug(f"save of persisted {type(record).__name__} resolved to Update")
        return _resolve_update(entry)

    if entry.condition_expression is not None:
        raise TransactionalSaveConditionCollision(
            "Transactional write includes a save operation that would result in a "
            "'safe put' for the given item, yet a condition expression was also "
            "provided. Use a put entry instead, adding the existence check to your "
            "own condition expression if desired.",
            {'item': record.build_item_for_save(), 'options': entry.options()},
        )

    guard = record.prevent_overwrite_expression()
    logger.debug(f"save of new {type(record).__name__} resolved to conditional Put")
    return _resolve_put(entry, guard)


def _resolve_put(entry, guard: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    record = entry.record
    request = entry.options()
    if guard:
        request['ConditionExpression'] = guard['ConditionExpression']
        request['ExpressionAttributeNames'] = merge_expression_attributes(
            guard['ExpressionAttributeNames'], request.get('ExpressionAttributeNames'), 'name'
        )
    request['TableName'] = record.table_name()
    request['Item'] = record.build_item_for_save()
    return {'Put': request}


def _resolve_update(entry) -> Dict[str, Any]:
    record = entry.record
    request = entry.options()
    update_expression, names, values = type(record).build_update_expression(
        record.dirty_changes_for_update()
    )

    if update_expression is None:
        return _resolve_unchanged(entry)

    request['TableName'] = record.table_name()
    request['Key'] = record.key_values()
    request['UpdateExpression'] = update_expression

    names = merge_expression_attributes(names, request.get('ExpressionAttributeNames'), 'name')
    values = merge_expression_attributes(values, request.get('ExpressionAttributeValues'), 'value')
    _set_or_drop(request, 'ExpressionAttributeNames', names)
    _set_or_drop(request, 'ExpressionAttributeValues', values)
    return {'Update': request}


def _resolve_unchanged(entry) -> Dict[str, Any]:
    # DynamoDB rejects an Update without UpdateExpression
    record = entry.record
    request = entry.options()
    if 'ConditionExpression' not in request:
        guard = record.item_exists_expression()
        request['ConditionExpression'] = guard['ConditionExpression']
        request['ExpressionAttributeNames'] = merge_expression_attributes(
            guard['ExpressionAttributeNames'], request.get('ExpressionAttributeNames'), 'name'
        )
    request['TableName'] = record.table_name()
    request['Key'] = record.key_values()
    _set_or_drop(request, 'ExpressionAttributeNames', request.get('ExpressionAttributeNames'))
    _set_or_drop(request, 'ExpressionAttributeValues', request.get('ExpressionAttributeValues'))
    logger.debug(f"{type(record).__name__} has no changes; resolved to ConditionCheck")
    return {'ConditionCheck': request}


def _resolve_delete(entry: TransactDelete) -> Dict[str, Any]:
    record = entry.record
    request = entry.options()
    request['TableName'] = record.table_name()
    request['Key'] = record.key_values()
    return {'Delete': request}


def _resolve_check(entry: TransactCheck) -> Dict[str, Any]:
    request = entry.options()
    check = entry.check.to_request()
    names = merge_expression_attributes(
        check.pop('ExpressionAttributeNames', {}), request.pop('ExpressionAttributeNames', None), 'name'
    )
    values = merge_expression_attributes(
        check.pop('ExpressionAttributeValues', {}), request.pop('ExpressionAttributeValues', None), 'value'
    )
    request.update(check)
    _set_or_drop(request, 'ExpressionAttributeNames', names)
    _set_or_drop(request, 'ExpressionAttributeValues', values)
    return {'ConditionCheck': request}


def _set_or_drop(request: Dict[str, Any], name: str, value: Dict[str, Any]) -> None:
    # DynamoDB rejects empty placeholder maps
    if value:
        request[name] = value
    else:
        request.pop(name, None)


class TransactionWriteApi:
    """
    Write API for multi-item atomic commits of records.

    Args:
        client_configuration: Source of the default client; the library-wide
            default configuration when omitted
    """

    def __init__(self, client_configuration: Optional[ClientConfiguration] = None):
        self.client_configuration = client_configuration or default_client_configuration

    def transact_write(self, transact_items: Iterable[Any], client: Any = None, **request_opts) -> Dict[str, Any]:
        """
        Commit a batch of write entries atomically.

        DynamoDB Operation: TransactWriteItems

        Args:
            transact_items: Entries in commit order, e.g.
                [TransactSave(new_item), {"update": order}, {"delete": stale}]
            client: Client for this call instead of the configured one
            **request_opts: Passed through to transact_write_items
                (ClientRequestToken, ReturnConsumedCapacity, ...)

        Returns:
            The raw transact_write_items response

        Raises:
            InvalidTransactItem, TransactionalSaveConditionCollision,
            ExpressionAttributeCollision: before any network call
            botocore.exceptions.ClientError: the commit failed; records unchanged

        Example:
            api.transact_write([
                {"check": Order.transact_check_expression(key=..., condition_expression=...)},
                {"save": new_order},
                {"put": replacement, "condition_expression": "attribute_exists(#h)",
                 "expression_attribute_names": {"#h": "customer_id"}},
                {"update": order},
                {"delete": stale_order},
            ])
        """
        plan = plan_transact_write(transact_items)
        client = client or self.client_configuration.dynamodb_client

        request = dict(request_opts)
        request['TransactItems'] = plan.transact_items

        try:
            response = client.transact_write_items(**request)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Transactional write of {len(plan.transact_items)} items failed: {e}")
            raise

        plan.apply()
        logger.info(f"Transactional write committed {len(plan.transact_items)} items")
        return response


def transact_write(transact_items: Iterable[Any], client: Any = None, **request_opts) -> Dict[str, Any]:
    """Commit write entries atomically using the library-wide default client."""
    return TransactionWriteApi().transact_write(transact_items, client=client, **request_opts)
