"""Formatters turn a cast domain value into its stored string form."""

from datetime import date


class Iso8601Formatter:
    """Default formatter: ISO-8601 via ``isoformat()``.

    Works for both ``date`` and ``datetime`` values. Any object exposing a
    ``format(value) -> str`` method can be passed to a marshaler instead.
    """

    @staticmethod
    def format(value: date) -> str:
        return value.isoformat()
