from datetime import date, datetime, timezone
from typing import Any, Optional

from ..exceptions import TypeMismatch, ValidationError
from ..utils import parse_iso, to_utc
from .formatters import Iso8601Formatter


class TimeMarshaler:
    """Marshals ``datetime.datetime`` attributes to and from their stored form.

    Cast values are normalized to timezone-aware UTC unless ``use_local_time``
    is set, in which case the offset of the input is preserved. Naive
    datetimes are taken as UTC.

    Args:
        formatter: Object with a ``format(datetime) -> str`` method used by
            ``serialize``. Defaults to ISO-8601.
        use_local_time: Keep the value's own offset instead of converting to UTC.
    """

    def __init__(self, formatter: Any = None, use_local_time: bool = False):
        self.formatter = formatter or Iso8601Formatter
        self.use_local_time = bool(use_local_time)

    def type_cast(self, raw_value: Any) -> Optional[datetime]:
        value = self._cast(raw_value)
        if not self.use_local_time and isinstance(value, datetime):
            return to_utc(value)
        return value

    def serialize(self, raw_value: Any) -> Optional[str]:
        value = self.type_cast(raw_value)
        if value is None:
            return None
        if isinstance(value, datetime):
            return self.formatter.format(value)
        raise TypeMismatch(
            f"expected a datetime value or None, got {type(value).__name__}",
            expected=datetime,
            actual=type(value),
        )

    def _cast(self, raw_value: Any) -> Optional[datetime]:
        if raw_value is None or raw_value == '':
            return None
        if isinstance(raw_value, datetime):
            return raw_value
        if isinstance(raw_value, date):
            return datetime(raw_value.year, raw_value.month, raw_value.day)
        if isinstance(raw_value, int) and not isinstance(raw_value, bool):
            # Unix timestamp
            if self.use_local_time:
                return datetime.fromtimestamp(raw_value).astimezone()
            return datetime.fromtimestamp(raw_value, tz=timezone.utc)
        try:
            return parse_iso(str(raw_value))
        except ValueError as e:
            raise ValidationError(f"Invalid datetime value: {raw_value!r}", original_error=e) from e

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(formatter={self.formatter!r}, use_local_time={self.use_local_time})"
