"""
Core infrastructure components.

- Client construction and the shared default client configuration
- Expression helpers (update expressions, placeholder merging, check expressions)
- Table provisioning lives in ``core.table_migration`` and is imported
  directly from there (it depends on the model layer).
"""

from .client import (
    ClientConfiguration,
    configure_client,
    create_dynamodb_client,
    default_client_configuration,
)
from .expressions import (
    CheckExpression,
    build_update_expression,
    merge_expression_attributes,
)

__all__ = [
    "CheckExpression",
    "ClientConfiguration",
    "build_update_expression",
    "configure_client",
    "create_dynamodb_client",
    "default_client_configuration",
    "merge_expression_attributes",
]
