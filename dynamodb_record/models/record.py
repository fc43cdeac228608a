"""
Record: one model instance mapped to one DynamoDB item.

A record tracks which attributes changed since it was built or loaded and
carries an explicit lifecycle state:

    NEW ──mark_clean()──> CLEAN ──assign non-key──> DIRTY ──mark_clean()──> CLEAN
     │                      │                          │
     └──────────────────────┴──mark_destroyed()────────┴──> DESTROYED

- Construction puts a record in NEW; every explicitly passed field is dirty.
- Loading (``from_dynamodb_item`` / transact_find) ends in CLEAN.
- Assigning a *changed* key attribute on a persisted record (CLEAN or DIRTY)
  moves it back to NEW: the record now points at an item that was never
  written, so a save creates it with an overwrite guard.

Only the transaction coordinators call ``mark_clean``/``mark_destroyed`` on
records they were given, and only after DynamoDB confirmed the commit.
"""

import logging
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Set, Type

from pydantic import ConfigDict, PrivateAttr

from ..core.expressions import (
    CheckExpression,
    build_update_expression,
    item_exists_condition,
    prevent_overwrite_condition,
)
from ..exceptions import InvalidModel, ValidationError
from .base import DynamoDBMixin, MarshalerMixin

logger = logging.getLogger(__name__)


class RecordState(str, Enum):
    """Lifecycle states of a record."""
    NEW = "new"
    CLEAN = "clean"
    DIRTY = "dirty"
    DESTROYED = "destroyed"


class TableMeta:
    """Base class for table metadata definitions.

    Key fields are model field names, not database attribute names.
    """
    table_name: str
    partition_key: str
    sort_key: Optional[str] = None

    @classmethod
    def get_key_fields(cls) -> List[str]:
        """Get item key field names.

        - For simple keys: [partition_key]
        - For composite keys: [partition_key, sort_key]
        """
        fields = [cls.partition_key]
        if cls.sort_key:
            fields.append(cls.sort_key)
        return fields


class Record(DynamoDBMixin, MarshalerMixin):
    """
    Base class for DynamoDB-backed models.

    Example:
        class Order(Record):
            class Meta(TableMeta):
                table_name = "orders"
                partition_key = "customer_id"
                sort_key = "order_id"

            customer_id: str
            order_id: str
            total: Optional[Decimal] = None
            placed_at: Optional[datetime] = None
            note: Optional[str] = Field(None, alias="n")
    """

    Meta: ClassVar[Type[TableMeta]]

    model_config = ConfigDict(
        validate_assignment=True,
        populate_by_name=True,
    )

    _dirty: Set[str] = PrivateAttr(default_factory=set)
    _state: RecordState = PrivateAttr(default=RecordState.NEW)

    def model_post_init(self, context: Any) -> None:
        self._dirty = set(self.model_fields_set)
        self._state = RecordState.NEW

    def __setattr__(self, name: str, value: Any) -> None:
        if name not in type(self).model_fields:
            super().__setattr__(name, value)
            return

        previous = getattr(self, name)
        super().__setattr__(name, value)
        if getattr(self, name) != previous:
            self._attribute_changed(name)

    def _attribute_changed(self, name: str) -> None:
        self._dirty.add(name)
        if self._state is RecordState.DESTROYED:
            return
        if name in self.key_attribute_names():
            if self._state is not RecordState.NEW:
                logger.debug(f"Key attribute '{name}' changed on persisted {type(self).__name__}; treating as new item")
                self._state = RecordState.NEW
        elif self._state is RecordState.CLEAN:
            self._state = RecordState.DIRTY

    # ------------------------------------------------------------------
    # Table metadata
    # ------------------------------------------------------------------

    @classmethod
    def _table_meta(cls) -> Type[TableMeta]:
        meta = getattr(cls, 'Meta', None)
        if meta is None or not getattr(meta, 'table_name', None) or not getattr(meta, 'partition_key', None):
            raise InvalidModel(f"{cls.__name__} must define a Meta with table_name and partition_key")
        for key_field in meta.get_key_fields():
            if key_field not in cls.model_fields:
                raise InvalidModel(f"{cls.__name__}.Meta names key '{key_field}' which is not a field")
        return meta

    @classmethod
    def table_name(cls) -> str:
        return cls._table_meta().table_name

    @classmethod
    def key_attribute_names(cls) -> List[str]:
        """Field names of the hash key and, if defined, the range key."""
        return cls._table_meta().get_key_fields()

    @classmethod
    def hash_key(cls) -> str:
        return cls._table_meta().partition_key

    @classmethod
    def range_key(cls) -> Optional[str]:
        return cls._table_meta().sort_key

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def state(self) -> RecordState:
        return self._state

    @property
    def destroyed(self) -> bool:
        return self._state is RecordState.DESTROYED

    def expect_new_item(self) -> bool:
        """True when saving this record must create the item."""
        return self._state is RecordState.NEW

    def is_dirty(self) -> bool:
        return bool(self._dirty)

    def dirty_attributes(self) -> Set[str]:
        return set(self._dirty)

    def mark_clean(self) -> None:
        """Record now matches what is stored: clear the dirty set."""
        self._dirty.clear()
        self._state = RecordState.CLEAN

    def mark_destroyed(self) -> None:
        self._state = RecordState.DESTROYED

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    @classmethod
    def build_key(cls, key: Mapping[str, Any]) -> Dict[str, Any]:
        """Convert a key given by field name into a stored key.

        Raises:
            ValidationError: Missing or unexpected key attributes
        """
        expected = cls.key_attribute_names()
        missing = [name for name in expected if key.get(name) is None]
        unexpected = [name for name in key if name not in expected]
        if missing or unexpected:
            raise ValidationError(
                f"Invalid key for {cls.__name__}: expected {expected}",
                {'missing': missing, 'unexpected': unexpected},
            )
        return {cls.attribute_to_db_name(name): cls.serialize_attribute(name, key[name]) for name in expected}

    def key_values(self) -> Dict[str, Any]:
        """This record's key as stored in DynamoDB."""
        return {
            self.attribute_to_db_name(name): self.serialize_attribute(name, getattr(self, name))
            for name in self.key_attribute_names()
        }

    def dirty_changes_for_update(self) -> Dict[str, Any]:
        """Dirty non-key attributes and their current values, in field order."""
        keys = set(self.key_attribute_names())
        return {
            name: getattr(self, name)
            for name in type(self).model_fields
            if name in self._dirty and name not in keys
        }

    @classmethod
    def build_update_expression(cls, diff: Mapping[str, Any]):
        """Build (update_expression, names, values) for a field-name diff.

        None values remove the attribute. Placeholders use the reserved
        ``#rec_`` / ``:rec_`` prefixes.
        """
        pairs = [
            (cls.attribute_to_db_name(name), cls.serialize_attribute(name, value))
            for name, value in diff.items()
        ]
        return build_update_expression(pairs)

    def build_item_for_save(self) -> Dict[str, Any]:
        """Full item payload for a put."""
        return self.to_dynamodb_item()

    def prevent_overwrite_expression(self) -> Dict[str, Any]:
        """Condition asserting the item's key does not exist yet."""
        range_key = self.range_key()
        return prevent_overwrite_condition(
            self.attribute_to_db_name(self.hash_key()),
            self.attribute_to_db_name(range_key) if range_key else None,
        )

    def item_exists_expression(self) -> Dict[str, Any]:
        """Condition asserting the item's key is already stored."""
        return item_exists_condition(self.attribute_to_db_name(self.hash_key()))

    @classmethod
    def tfind_opts(
        cls,
        key: Mapping[str, Any],
        projection_expression: Optional[str] = None,
        expression_attribute_names: Optional[Dict[str, str]] = None,
    ):
        """Find descriptor for ``transact_find``.

        Args:
            key: Key attributes by field name, e.g. ``{"customer_id": "c1", "order_id": "o1"}``
        """
        # Local import: handlers depend on models
        from ..handlers.transactions.items import TransactFind

        return TransactFind(
            model_class=cls,
            key=cls.build_key(key),
            projection_expression=projection_expression,
            expression_attribute_names=expression_attribute_names,
        )

    @classmethod
    def transact_check_expression(
        cls,
        key: Mapping[str, Any],
        condition_expression: Any,
        expression_attribute_names: Optional[Dict[str, str]] = None,
        expression_attribute_values: Optional[Dict[str, Any]] = None,
    ) -> CheckExpression:
        """Precondition on one item of this model's table for ``transact_write``.

        Example:
            check = Order.transact_check_expression(
                key={"customer_id": "c1", "order_id": "o1"},
                condition_expression="size(#T) <= :v",
                expression_attribute_names={"#T": "total"},
                expression_attribute_values={":v": 1024},
            )
        """
        return CheckExpression(
            table_name=cls.table_name(),
            key=cls.build_key(key),
            condition_expression=condition_expression,
            expression_attribute_names=expression_attribute_names,
            expression_attribute_values=expression_attribute_values,
        )

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]) -> 'Record':
        """Build a CLEAN record from a stored item."""
        record = super().from_dynamodb_item(item)
        record.mark_clean()
        return record

    @classmethod
    def from_projected_item(cls, item: Dict[str, Any]) -> 'Record':
        """Build a CLEAN record from a projected item.

        Only the attributes that came back are set, each cast through its
        marshaler; every other field is None. Model validation is skipped so
        attributes left out by the projection (keys included) never fail the
        read. Attributes unknown to the model are ignored.
        """
        values = {name: None for name in cls.model_fields}
        present = set()
        for name, value in cls.translate_item(item).items():
            if name not in values:
                continue
            marshaler = cls.marshaler_for(name)
            values[name] = marshaler.type_cast(value) if marshaler is not None else value
            present.add(name)

        record = cls.model_construct(_fields_set=present, **values)
        record.mark_clean()
        return record
