from datetime import date, datetime, timezone
from typing import Any, Optional

from ..exceptions import TypeMismatch, ValidationError
from ..utils import parse_iso
from .formatters import Iso8601Formatter


class DateMarshaler:
    """Marshals ``datetime.date`` attributes to and from their stored form.

    Args:
        formatter: Object with a ``format(date) -> str`` method used by
            ``serialize``. Defaults to ISO-8601.
    """

    def __init__(self, formatter: Any = None):
        self.formatter = formatter or Iso8601Formatter

    def type_cast(self, raw_value: Any) -> Optional[date]:
        """Cast a raw value to a date.

        ``None`` and ``""`` give ``None``; integers are Unix timestamps (UTC);
        datetimes keep their calendar date; other values are parsed from
        their ISO-8601 string form.
        """
        if raw_value is None or raw_value == '':
            return None
        if isinstance(raw_value, datetime):
            return raw_value.date()
        if isinstance(raw_value, date):
            return raw_value
        if isinstance(raw_value, int) and not isinstance(raw_value, bool):
            return datetime.fromtimestamp(raw_value, tz=timezone.utc).date()
        try:
            return parse_iso(str(raw_value)).date()
        except ValueError as e:
            raise ValidationError(f"Invalid date value: {raw_value!r}", original_error=e) from e

    def serialize(self, raw_value: Any) -> Optional[str]:
        value = self.type_cast(raw_value)
        if value is None:
            return None
        if isinstance(value, date) and not isinstance(value, datetime):
            return self.formatter.format(value)
        raise TypeMismatch(
            f"expected a date value or None, got {type(value).__name__}",
            expected=date,
            actual=type(value),
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(formatter={self.formatter!r})"
