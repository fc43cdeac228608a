"""
Table provisioning for Record models.

TableMigration creates, updates and deletes the DynamoDB table behind a
model, deriving the key schema and attribute definitions from the model's
Meta. Secondary indexes are not managed here.
"""

import logging
from typing import Any, Dict, List, Optional

from botocore.exceptions import ClientError

from ..exceptions import InvalidModel, TableDoesNotExist, ValidationError
from ..models.record import Record
from ..utils import dynamodb_scalar_type
from .client import default_client_configuration

logger = logging.getLogger(__name__)

VALID_BILLING_MODES = ('PAY_PER_REQUEST', 'PROVISIONED')


def _is_not_found(error: ClientError) -> bool:
    return error.response.get('Error', {}).get('Code') == 'ResourceNotFoundException'


class TableMigration:
    """
    Provisioning operations for one model's table.

    Args:
        model: Record subclass
        client: Optional DynamoDB client; defaults to the shared configured client

    Raises:
        InvalidModel: If model is not a Record subclass with valid table metadata
    """

    def __init__(self, model: type, client: Any = None):
        self._assert_model_valid(model)
        self.model = model
        self._client = client

    @property
    def client(self):
        if self._client is None:
            self._client = default_client_configuration.dynamodb_client
        return self._client

    def create(
        self,
        billing_mode: Optional[str] = None,
        provisioned_throughput: Optional[Dict[str, int]] = None,
        **opts
    ) -> Dict[str, Any]:
        """
        Create the model's table.

        DynamoDB Operation: CreateTable

        Args:
            billing_mode: 'PAY_PER_REQUEST' or 'PROVISIONED'. Required unless
                provisioned_throughput is given, in which case 'PROVISIONED'
                is assumed.
            provisioned_throughput: {'ReadCapacityUnits': n, 'WriteCapacityUnits': n}
            **opts: Passed through to create_table (e.g. Tags, SSESpecification)

        Returns:
            Raw create_table response

        Raises:
            ValidationError: Invalid billing configuration (no call is made)
        """
        self._validate_billing(billing_mode, provisioned_throughput)

        create_opts = dict(opts)
        create_opts.update({
            'TableName': self.model.table_name(),
            'AttributeDefinitions': self._attribute_definitions(),
            'KeySchema': self._key_schema(),
        })
        if billing_mode is not None:
            create_opts['BillingMode'] = billing_mode
        if provisioned_throughput is not None:
            create_opts['ProvisionedThroughput'] = provisioned_throughput

        response = self.client.create_table(**create_opts)
        logger.info(f"Created table {self.model.table_name()}")
        return response

    def update(self, **opts) -> Dict[str, Any]:
        """
        Update the model's table with the given UpdateTable parameters.

        Raises:
            TableDoesNotExist: The table does not exist
        """
        update_opts = dict(opts)
        update_opts['TableName'] = self.model.table_name()
        try:
            response = self.client.update_table(**update_opts)
        except ClientError as e:
            if _is_not_found(e):
                raise TableDoesNotExist(self.model.table_name(), original_error=e) from e
            raise
        logger.info(f"Updated table {self.model.table_name()}")
        return response

    def delete(self) -> Dict[str, Any]:
        """
        Delete the model's table.

        Raises:
            TableDoesNotExist: The table did not exist
        """
        try:
            response = self.client.delete_table(TableName=self.model.table_name())
        except ClientError as e:
            if _is_not_found(e):
                raise TableDoesNotExist(self.model.table_name(), original_error=e) from e
            raise
        logger.info(f"Deleted table {self.model.table_name()}")
        return response

    def wait_until_available(self, **waiter_config) -> None:
        """Block until the table exists and is ACTIVE.

        Args:
            **waiter_config: Passed as WaiterConfig (Delay, MaxAttempts)
        """
        waiter = self.client.get_waiter('table_exists')
        wait_kwargs = {'TableName': self.model.table_name()}
        if waiter_config:
            wait_kwargs['WaiterConfig'] = waiter_config
        waiter.wait(**wait_kwargs)

    @staticmethod
    def _assert_model_valid(model: type) -> None:
        if not (isinstance(model, type) and issubclass(model, Record)):
            raise InvalidModel(f"Table models must subclass Record, got {model!r}")
        # Raises InvalidModel when Meta is missing or inconsistent
        model.key_attribute_names()

    @staticmethod
    def _validate_billing(billing_mode: Optional[str], provisioned_throughput: Optional[Dict[str, int]]) -> None:
        if billing_mode is not None and billing_mode not in VALID_BILLING_MODES:
            raise ValidationError(
                f"billing_mode must be one of {', '.join(VALID_BILLING_MODES)}, got {billing_mode!r}"
            )
        if provisioned_throughput is not None:
            if billing_mode == 'PAY_PER_REQUEST':
                raise ValidationError(
                    "when provisioned_throughput is specified, billing_mode must either be "
                    "unspecified or 'PROVISIONED'"
                )
        elif billing_mode != 'PAY_PER_REQUEST':
            raise ValidationError(
                "when provisioned_throughput is not specified, billing_mode must be 'PAY_PER_REQUEST'"
            )

    def _key_schema(self) -> List[Dict[str, str]]:
        schema = [{
            'AttributeName': self.model.attribute_to_db_name(self.model.hash_key()),
            'KeyType': 'HASH',
        }]
        range_key = self.model.range_key()
        if range_key:
            schema.append({
                'AttributeName': self.model.attribute_to_db_name(range_key),
                'KeyType': 'RANGE',
            })
        return schema

    def _attribute_definitions(self) -> List[Dict[str, str]]:
        definitions = []
        for name in self.model.key_attribute_names():
            field_info = self.model.model_fields[name]
            attribute_type = dynamodb_scalar_type(field_info.annotation)
            if attribute_type is None:
                raise InvalidModel(
                    f"Key attribute '{name}' of {self.model.__name__} has unsupported type {field_info.annotation!r}"
                )
            definitions.append({
                'AttributeName': self.model.attribute_to_db_name(name),
                'AttributeType': attribute_type,
            })
        return definitions
