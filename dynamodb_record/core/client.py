"""
DynamoDB client construction and sharing.

The transaction coordinators and table provisioning take a client per call
or per instance. When none is given they fall back to a ClientConfiguration,
which holds an injected client or lazily builds one from DynamoDBConfig.

Clients are built from a boto3 DynamoDB *resource* and exposed as
``resource.meta.client``: that client carries boto3's high-level
serialization, so requests and responses use plain Python values instead of
the typed ``{"S": ...}`` wire format.
"""

import logging
from typing import Any, Optional

import boto3

from ..config import DynamoDBConfig
from ..exceptions import ConnectionError

logger = logging.getLogger(__name__)


def create_dynamodb_client(config: DynamoDBConfig):
    """
    Create a DynamoDB client from configuration.

    Args:
        config: DynamoDB configuration

    Returns:
        boto3 DynamoDB client with high-level value serialization

    Raises:
        ConnectionError: If the session or resource cannot be created
    """
    if config.enable_debug_logging:
        logging.getLogger('dynamodb_record').setLevel(logging.DEBUG)

    try:
        session = boto3.Session(
            aws_access_key_id=config.aws_access_key_id,
            aws_secret_access_key=config.aws_secret_access_key,
            region_name=config.region_name
        )

        resource = session.resource('dynamodb', **config.resource_kwargs())
    except Exception as e:
        logger.error(f"Failed to create DynamoDB resource: {e}")
        raise ConnectionError(
            f"Failed to connect to DynamoDB: {e}",
            e,
            {'region': config.region_name, 'endpoint': config.endpoint_url},
        ) from e

    logger.debug(f"Created DynamoDB client for region {config.region_name}")
    return resource.meta.client


class ClientConfiguration:
    """
    Holder for the DynamoDB client used when a call does not pass its own.

    Args:
        client: Client to use as-is
        config: Configuration for lazily creating a client (defaults to
            DynamoDBConfig.from_env())
    """

    def __init__(self, client: Any = None, config: Optional[DynamoDBConfig] = None):
        self._client = client
        self.config = config

    def configure_client(self, client: Any = None, config: Optional[DynamoDBConfig] = None) -> None:
        """Replace the configured client and/or configuration.

        Passing only a config drops the current client so the next access
        builds one from the new settings.
        """
        if config is not None:
            self.config = config
        self._client = client

    @property
    def dynamodb_client(self):
        """The configured client, created on first access."""
        if self._client is None:
            if self.config is None:
                self.config = DynamoDBConfig.from_env()
            self._client = create_dynamodb_client(self.config)
        return self._client


# Shared by the module-level transact_find/transact_write and TableMigration
default_client_configuration = ClientConfiguration()


def configure_client(client: Any = None, config: Optional[DynamoDBConfig] = None) -> None:
    """Configure the default client shared across the library."""
    default_client_configuration.configure_client(client=client, config=config)
