"""
Transaction entry types.

Write entries are a closed set of frozen dataclasses, one per operation:

- TransactSave    put-if-new or update, decided from the record's lifecycle
- TransactPut     unconditional overwrite with the record's full item
- TransactUpdate  upsert of the record's dirty attributes
- TransactDelete  delete by the record's key
- TransactCheck   standalone precondition (CheckExpression)

The mapping form used by callers who prefer plain dicts
(``{"save": record}``, ``{"put": record, "condition_expression": ...}``) is
converted by parse_transact_item, which rejects entries with zero or several
operation tags instead of picking one.
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union

from ...core.expressions import CheckExpression
from ...exceptions import InvalidTransactItem
from ...models.record import Record

OPTION_KEYS = (
    'condition_expression',
    'expression_attribute_names',
    'expression_attribute_values',
    'return_values_on_condition_check_failure',
)

_REQUEST_NAMES = {
    'condition_expression': 'ConditionExpression',
    'expression_attribute_names': 'ExpressionAttributeNames',
    'expression_attribute_values': 'ExpressionAttributeValues',
    'return_values_on_condition_check_failure': 'ReturnValuesOnConditionCheckFailure',
}


class _WriteOptions:
    """Request options shared by every write entry."""

    def options(self) -> Dict[str, Any]:
        """Caller-supplied options as request parameters (None values left out)."""
        request = {}
        for option, request_name in _REQUEST_NAMES.items():
            value = getattr(self, option)
            if value is None:
                continue
            request[request_name] = dict(value) if isinstance(value, Mapping) else value
        return request


@dataclass(frozen=True)
class _RecordEntry(_WriteOptions):
    record: Record
    condition_expression: Any = None
    expression_attribute_names: Optional[Dict[str, str]] = None
    expression_attribute_values: Optional[Dict[str, Any]] = None
    return_values_on_condition_check_failure: Optional[str] = None

    tag: ClassVar[str] = ''


@dataclass(frozen=True)
class TransactSave(_RecordEntry):
    tag: ClassVar[str] = 'save'


@dataclass(frozen=True)
class TransactPut(_RecordEntry):
    tag: ClassVar[str] = 'put'


@dataclass(frozen=True)
class TransactUpdate(_RecordEntry):
    tag: ClassVar[str] = 'update'


@dataclass(frozen=True)
class TransactDelete(_RecordEntry):
    tag: ClassVar[str] = 'delete'


@dataclass(frozen=True)
class TransactCheck(_WriteOptions):
    check: CheckExpression
    condition_expression: Any = None
    expression_attribute_names: Optional[Dict[str, str]] = None
    expression_attribute_values: Optional[Dict[str, Any]] = None
    return_values_on_condition_check_failure: Optional[str] = None

    tag: ClassVar[str] = 'check'


TransactWriteItem = Union[TransactSave, TransactPut, TransactUpdate, TransactDelete, TransactCheck]

ENTRY_TYPES = {
    entry_type.tag: entry_type
    for entry_type in (TransactSave, TransactPut, TransactUpdate, TransactDelete, TransactCheck)
}


def parse_transact_item(entry: Any) -> TransactWriteItem:
    """
    Normalize one write entry.

    Args:
        entry: A Transact* instance, or a mapping with exactly one of the keys
            save/put/update/delete/check plus optional snake_case options

    Raises:
        InvalidTransactItem: Zero or several operation tags, unknown keys, or a
            payload of the wrong type
    """
    if isinstance(entry, tuple(ENTRY_TYPES.values())):
        _validate_payload(entry)
        return entry

    if not isinstance(entry, Mapping):
        raise InvalidTransactItem(
            f"Invalid transact write item, expected a mapping or Transact* entry, got {type(entry).__name__}"
        )

    tags = [tag for tag in ENTRY_TYPES if tag in entry]
    if len(tags) != 1:
        raise InvalidTransactItem(
            "Invalid transact write item, must include exactly one operation of type "
            f"{', '.join(ENTRY_TYPES)} - found {tags or 'none'}",
            {'keys': sorted(str(k) for k in entry)},
        )

    unknown = [key for key in entry if key not in ENTRY_TYPES and key not in OPTION_KEYS]
    if unknown:
        raise InvalidTransactItem(
            f"Invalid transact write item, unsupported option(s): {', '.join(map(str, unknown))}",
            {'unknown': unknown},
        )

    tag = tags[0]
    options = {key: entry[key] for key in OPTION_KEYS if key in entry}
    parsed = ENTRY_TYPES[tag](entry[tag], **options)
    _validate_payload(parsed)
    return parsed


def _validate_payload(entry: TransactWriteItem) -> None:
    if isinstance(entry, TransactCheck):
        if not isinstance(entry.check, CheckExpression):
            raise InvalidTransactItem(
                f"check entries take a CheckExpression, got {type(entry.check).__name__}"
            )
        if entry.condition_expression is not None:
            raise InvalidTransactItem(
                "check entries carry their condition in the CheckExpression; "
                "condition_expression is not accepted alongside it"
            )
        return
    if not isinstance(entry.record, Record):
        raise InvalidTransactItem(
            f"{entry.tag} entries take a Record instance, got {type(entry.record).__name__}"
        )


# =============================================================================
# Transactional reads
# =============================================================================

@dataclass(frozen=True)
class TransactFind:
    """
    One keyed lookup in a transact_find call.

    Build it with ``Model.tfind_opts(key=...)``; ``key`` here is already in
    stored form (database attribute names, marshaled values).
    """

    model_class: type
    key: Dict[str, Any]
    projection_expression: Optional[str] = None
    expression_attribute_names: Optional[Dict[str, str]] = None

    def to_request(self) -> Dict[str, Any]:
        """Render the ``Get`` transact item for this lookup."""
        get = {
            'TableName': self.model_class.table_name(),
            'Key': dict(self.key),
        }
        if self.projection_expression:
            get['ProjectionExpression'] = self.projection_expression
        if self.expression_attribute_names:
            get['ExpressionAttributeNames'] = dict(self.expression_attribute_names)
        return {'Get': get}


def parse_find_item(entry: Any) -> TransactFind:
    """
    Normalize one find entry.

    Accepts a TransactFind or a mapping ``{"model_class": Model, "key": {field: value}}``
    whose key uses field names.

    Raises:
        InvalidTransactItem: The entry is neither form
    """
    if isinstance(entry, TransactFind):
        model_class = entry.model_class
    elif isinstance(entry, Mapping) and 'model_class' in entry and 'key' in entry:
        model_class = entry['model_class']
    else:
        raise InvalidTransactItem(
            "Invalid transact find item, expected Model.tfind_opts(...) or "
            "{'model_class': Model, 'key': {...}}"
        )

    if not (isinstance(model_class, type) and issubclass(model_class, Record)):
        raise InvalidTransactItem(f"model_class must be a Record subclass, got {model_class!r}")

    if isinstance(entry, TransactFind):
        return entry
    return model_class.tfind_opts(
        key=entry['key'],
        projection_expression=entry.get('projection_expression'),
        expression_attribute_names=entry.get('expression_attribute_names'),
    )


@dataclass(frozen=True)
class MissingItem:
    """A transact_find lookup that matched no item."""
    model_class: type
    key: Dict[str, Any]


@dataclass
class TransactFindResult:
    """
    Result of transact_find.

    Attributes:
        responses: One slot per lookup, in request order: a CLEAN record or None
        missing_items: The lookups that returned no item, in request order
        consumed_capacity: ConsumedCapacity from the response, unchanged
    """
    responses: List[Optional[Record]] = field(default_factory=list)
    missing_items: List[MissingItem] = field(default_factory=list)
    consumed_capacity: Any = None
