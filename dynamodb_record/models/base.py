"""
Base Model Components and Mixins

## MarshalerMixin

MarshalerMixin registers a single ``@field_validator('*', mode='before')``.
Pydantic picks it up for every subclass through the MRO, so any record field
with a marshaler gets its raw input run through ``marshaler.type_cast``
before pydantic's own validation, both on construction and on assignment
(records use ``validate_assignment=True``).

A field gets a marshaler in one of two ways:

1. Explicitly, through ``typing.Annotated`` metadata::

       class Event(Record):
           happened_at: Annotated[Optional[datetime], TimeMarshaler(use_local_time=True)] = None

   Pydantic keeps unknown ``Annotated`` metadata on ``FieldInfo.metadata``
   without acting on it; the mixin looks for any object that exposes both
   ``type_cast`` and ``serialize``.

2. Implicitly, by annotation: ``datetime`` fields use a default
   ``TimeMarshaler()`` and ``date`` fields a default ``DateMarshaler()``.

## DynamoDBMixin

Converts between a model and the item shape the boto3 resource client
accepts: database attribute names (field aliases) as keys, marshaled values,
floats as Decimal, ``None`` values left out.
"""

import logging
from datetime import date, datetime
from typing import Any, Dict

from pydantic import BaseModel, field_validator
from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ValidationError
from ..marshalers import DateMarshaler, TimeMarshaler
from ..utils import to_dynamodb_value, unwrap_optional

logger = logging.getLogger(__name__)

_DEFAULT_TIME_MARSHALER = TimeMarshaler()
_DEFAULT_DATE_MARSHALER = DateMarshaler()


def _is_marshaler(obj: Any) -> bool:
    return callable(getattr(obj, 'type_cast', None)) and callable(getattr(obj, 'serialize', None))


class MarshalerMixin(BaseModel):
    """
    Mixin applying attribute marshalers to field values.

    Features:
    - Explicit marshalers via ``Annotated`` metadata
    - Default temporal marshalers for ``datetime`` and ``date`` fields
    - Casting on construction and on assignment
    """

    @classmethod
    def marshaler_for(cls, field_name: str):
        """Return the marshaler attached to ``field_name``, or None."""
        field_info = cls.model_fields.get(field_name)
        if field_info is None:
            return None

        for metadata in field_info.metadata:
            if _is_marshaler(metadata):
                return metadata

        annotation = unwrap_optional(field_info.annotation)
        # datetime first: datetime is a subclass of date
        if annotation is datetime:
            return _DEFAULT_TIME_MARSHALER
        if annotation is date:
            return _DEFAULT_DATE_MARSHALER
        return None

    @field_validator('*', mode='before')
    @classmethod
    def cast_marshaled_fields(cls, v, info):
        """
        Run raw input through the field's marshaler.

        Fields without a marshaler are returned unchanged. Marshaler errors
        (dynamodb_record ValidationError) propagate as-is.
        """
        marshaler = cls.marshaler_for(info.field_name)
        if marshaler is None:
            return v
        return marshaler.type_cast(v)


class DynamoDBMixin(BaseModel):
    """
    Mixin providing DynamoDB serialization for models.

    Features:
    - Attribute name mapping between field names and database names (aliases)
    - Per-field serialization through marshalers
    - Decimal conversion for floats
    """

    @classmethod
    def attribute_to_db_name(cls, name: str) -> str:
        """Database attribute name for a model field."""
        field_info = cls.model_fields.get(name)
        if field_info is not None and field_info.alias:
            return field_info.alias
        return name

    @classmethod
    def db_to_attribute_name(cls, db_name: str) -> str:
        """Model field name for a database attribute name.

        Unknown names are returned unchanged.
        """
        for name, field_info in cls.model_fields.items():
            if (field_info.alias or name) == db_name:
                return name
        return db_name

    @classmethod
    def serialize_attribute(cls, name: str, value: Any) -> Any:
        """Convert one field value to its stored form."""
        marshaler = cls.marshaler_for(name) if hasattr(cls, 'marshaler_for') else None
        if marshaler is not None:
            return marshaler.serialize(value)
        if isinstance(value, BaseModel):
            value = value.model_dump(exclude_none=True)
        return to_dynamodb_value(value)

    def to_dynamodb_item(self) -> Dict[str, Any]:
        """
        Convert the model to a DynamoDB item.

        Returns:
            Item keyed by database attribute names; attributes whose stored
            value is None are omitted.

        Example:
            item = record.to_dynamodb_item()
        """
        item = {}
        for name in type(self).model_fields:
            stored = self.serialize_attribute(name, getattr(self, name))
            if stored is not None:
                item[self.attribute_to_db_name(name)] = stored
        return item

    @classmethod
    def translate_item(cls, item: Dict[str, Any]) -> Dict[str, Any]:
        """Rename database attribute names in ``item`` to field names."""
        return {cls.db_to_attribute_name(db_name): value for db_name, value in item.items()}

    @classmethod
    def from_dynamodb_item(cls, item: Dict[str, Any]):
        """
        Create a model instance from a DynamoDB item.

        Args:
            item: Item keyed by database attribute names

        Returns:
            Model instance

        Raises:
            ValidationError: If the item does not fit the model
        """
        try:
            return cls(**cls.translate_item(item))
        except PydanticValidationError as e:
            logger.error(f"Failed to convert DynamoDB item to {cls.__name__}: {e}")
            raise ValidationError(f"Failed to convert DynamoDB item to {cls.__name__}: {e}", original_error=e) from e
