"""
Transactional Read API

Runs one TransactGetItems call for a list of keyed lookups across any number
of record models, then turns each positional response slot back into a
record of the model that asked for it.

DynamoDB answers lookups in request order, so slot i always belongs to
lookup i. Empty slots become None in ``responses`` and a MissingItem entry.
Lookups with a projection expression build partial records: only the
attributes that came back are set.
"""

import logging
from typing import Any, Iterable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from ...core.client import ClientConfiguration, default_client_configuration
from ...exceptions import InvalidTransactItem
from .items import MissingItem, TransactFindResult, parse_find_item

logger = logging.getLogger(__name__)


class TransactionReadApi:
    """
    Read API for multi-item atomic lookups of records.

    Args:
        client_configuration: Source of the default client; the library-wide
            default configuration when omitted
    """

    def __init__(self, client_configuration: Optional[ClientConfiguration] = None):
        self.client_configuration = client_configuration or default_client_configuration

    def transact_find(self, transact_items: Iterable[Any], client: Any = None, **request_opts) -> TransactFindResult:
        """
        Read several items atomically.

        DynamoDB Operation: TransactGetItems

        Args:
            transact_items: Lookups in order, e.g.
                [Customer.tfind_opts(key={"customer_id": "c1"}),
                 {"model_class": Order, "key": {"customer_id": "c1", "order_id": "o1"}}]
            client: Client for this call instead of the configured one
            **request_opts: Passed through to transact_get_items
                (e.g. ReturnConsumedCapacity)

        Returns:
            TransactFindResult whose ``responses`` mirror the lookup order

        Raises:
            InvalidTransactItem: Malformed lookup or empty list (no call made)
            botocore.exceptions.ClientError: The read failed as a whole
        """
        if transact_items is None:
            raise InvalidTransactItem("transact_items is required")
        descriptors = [parse_find_item(entry) for entry in transact_items]
        if not descriptors:
            raise InvalidTransactItem("transact_items must contain at least one entry")

        client = client or self.client_configuration.dynamodb_client
        request = dict(request_opts)
        request['TransactItems'] = [descriptor.to_request() for descriptor in descriptors]

        try:
            response = client.transact_get_items(**request)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Transactional find of {len(descriptors)} items failed: {e}")
            raise

        slots = response.get('Responses') or []
        result = TransactFindResult(consumed_capacity=response.get('ConsumedCapacity'))

        for index, descriptor in enumerate(descriptors):
            slot = slots[index] if index < len(slots) else None
            item = (slot or {}).get('Item')
            if not item:
                result.missing_items.append(MissingItem(descriptor.model_class, descriptor.key))
                result.responses.append(None)
                continue
            if descriptor.projection_expression:
                result.responses.append(descriptor.model_class.from_projected_item(item))
            else:
                result.responses.append(descriptor.model_class.from_dynamodb_item(item))

        logger.info(
            f"Transactional find returned {len(descriptors) - len(result.missing_items)} "
            f"of {len(descriptors)} items"
        )
        return result


def transact_find(transact_items: Iterable[Any], client: Any = None, **request_opts) -> TransactFindResult:
    """Read items atomically using the library-wide default client."""
    return TransactionReadApi().transact_find(transact_items, client=client, **request_opts)
