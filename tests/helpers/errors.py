from botocore.exceptions import ClientError


def make_client_error(code: str, message: str = "failed", operation: str = "TransactWriteItems") -> ClientError:
    """Build a botocore ClientError with the given error code."""
    return ClientError(
        error_response={'Error': {'Code': code, 'Message': message}},
        operation_name=operation,
    )
