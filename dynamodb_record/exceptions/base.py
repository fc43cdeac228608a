from typing import Any, Dict, Optional


class DynamoDBRecordError(Exception):
    """Root of every exception raised by dynamodb_record itself.

    Attributes:
        message: What went wrong, for humans
        original_error: Lower-level exception this one was raised from, if any
        context: Extra key/value details rendered after the message
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        self.message = message
        self.original_error = original_error
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if not self.context:
            return self.message
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"{self.message} (Context: {details})"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, "
            f"original_error={self.original_error!r}, context={self.context!r})"
        )
