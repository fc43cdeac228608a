"""
Test configuration and fixtures for dynamodb_record.

Unit tests use Mock clients; integration tests run against moto's in-memory
DynamoDB through the same boto3 resource client the library builds.
"""

import sys
from pathlib import Path
from unittest.mock import Mock

# Add parent directory to path so we can import dynamodb_record
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from moto import mock_aws

from dynamodb_record import (
    ClientConfiguration,
    DynamoDBConfig,
    TableMigration,
    create_dynamodb_client,
)
from tests.helpers import Customer, Order


@pytest.fixture
def test_config():
    """DynamoDB configuration for testing (no endpoint override)."""
    return DynamoDBConfig(
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        region_name="us-east-1",
        endpoint_url=None,
    )


@pytest.fixture
def mock_client():
    """Mock DynamoDB client with successful transactional responses."""
    client = Mock()
    client.transact_write_items.return_value = {'ResponseMetadata': {'HTTPStatusCode': 200}}
    client.transact_get_items.return_value = {'Responses': []}
    return client


@pytest.fixture
def client_configuration(mock_client):
    """ClientConfiguration holding the mock client."""
    return ClientConfiguration(client=mock_client)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake credentials so nothing can reach a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("DYNAMODB_ENDPOINT_URL", raising=False)


@pytest.fixture
def moto_client(aws_credentials, test_config):
    """DynamoDB client backed by moto."""
    with mock_aws():
        yield create_dynamodb_client(test_config)


@pytest.fixture
def moto_tables(moto_client):
    """Create the customers and orders tables from the sample models."""
    for model in (Customer, Order):
        TableMigration(model, client=moto_client).create(billing_mode='PAY_PER_REQUEST')
    return moto_client
