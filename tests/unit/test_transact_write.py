"""
Tests for transactional writes.

Covers request resolution for every entry type, lifecycle updates after a
successful commit, and the guarantee that a failed commit leaves every
record exactly as the caller left it.
"""

from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from dynamodb_record import RecordState
from dynamodb_record.core.client import default_client_configuration
from dynamodb_record.exceptions import (
    ExpressionAttributeCollision,
    InvalidTransactItem,
    TransactionalSaveConditionCollision,
)
from dynamodb_record.handlers.transactions import (
    TransactCheck,
    TransactDelete,
    TransactionWriteApi,
    TransactPut,
    TransactSave,
    TransactUpdate,
    plan_transact_write,
    transact_write,
)
from tests.helpers import Customer, Order, make_client_error


def persisted(record):
    """Return the record marked as loaded from the table."""
    record.mark_clean()
    return record


def sent_items(mock_client):
    return mock_client.transact_write_items.call_args.kwargs['TransactItems']


@pytest.fixture
def write_api(client_configuration):
    return TransactionWriteApi(client_configuration)


class TestTransactWriteRequests:
    """Test the request items sent to TransactWriteItems."""

    def test_mixed_batch(self, write_api, mock_client):
        """New save, persisted update and delete in one call."""
        new_customer = Customer(customer_id="a", name="Ann")
        order = persisted(Order(customer_id="b", order_id="o1"))
        order.total = Decimal("1")
        stale = persisted(Customer(customer_id="c"))

        write_api.transact_write([
            {"save": new_customer},
            {"update": order},
            {"delete": stale},
        ])

        mock_client.transact_write_items.assert_called_once()
        assert sent_items(mock_client) == [
            {"Put": {
                "TableName": "customers",
                "Item": {"customer_id": "a", "name": "Ann"},
                "ConditionExpression": "attribute_not_exists(#rec_hk)",
                "ExpressionAttributeNames": {"#rec_hk": "customer_id"},
            }},
            {"Update": {
                "TableName": "orders",
                "Key": {"customer_id": "b", "order_id": "o1"},
                "UpdateExpression": "SET #rec_0 = :rec_0",
                "ExpressionAttributeNames": {"#rec_0": "total"},
                "ExpressionAttributeValues": {":rec_0": Decimal("1")},
            }},
            {"Delete": {
                "TableName": "customers",
                "Key": {"customer_id": "c"},
            }},
        ]

        assert new_customer.state is RecordState.CLEAN
        assert new_customer.is_dirty() is False
        assert order.state is RecordState.CLEAN
        assert order.is_dirty() is False
        assert stale.destroyed is True

    def test_save_of_new_composite_key_guards_both_keys(self, write_api, mock_client):
        write_api.transact_write([TransactSave(Order(customer_id="a", order_id="o1"))])

        put = sent_items(mock_client)[0]["Put"]
        assert put["ConditionExpression"] == (
            "attribute_not_exists(#rec_hk) AND attribute_not_exists(#rec_rk)"
        )
        assert put["ExpressionAttributeNames"] == {"#rec_hk": "customer_id", "#rec_rk": "order_id"}

    def test_save_of_persisted_record_is_update(self, write_api, mock_client):
        order = persisted(Order(customer_id="a", order_id="o1", note="x"))
        order.note = None

        write_api.transact_write([{
            "save": order,
            "condition_expression": "attribute_exists(#c)",
            "expression_attribute_names": {"#c": "customer_id"},
        }])

        assert sent_items(mock_client) == [{"Update": {
            "TableName": "orders",
            "Key": {"customer_id": "a", "order_id": "o1"},
            "UpdateExpression": "REMOVE #rec_0",
            "ConditionExpression": "attribute_exists(#c)",
            "ExpressionAttributeNames": {"#rec_0": "n", "#c": "customer_id"},
        }}]
        assert order.state is RecordState.CLEAN

    def test_save_of_rekeyed_record_is_guarded_put(self, write_api, mock_client):
        order = persisted(Order(customer_id="a", order_id="o1", total=Decimal("2")))
        order.order_id = "o2"

        write_api.transact_write([{"save": order}])

        put = sent_items(mock_client)[0]["Put"]
        assert put["Item"] == {"customer_id": "a", "order_id": "o2", "total": Decimal("2")}
        assert put["ConditionExpression"].startswith("attribute_not_exists(#rec_hk)")

    def test_save_of_new_record_with_condition_collides(self, write_api, mock_client):
        customer = Customer(customer_id="a")

        with pytest.raises(TransactionalSaveConditionCollision):
            write_api.transact_write([{"save": customer, "condition_expression": "attribute_exists(x)"}])

        mock_client.transact_write_items.assert_not_called()
        assert customer.state is RecordState.NEW

    def test_put_passes_options_through(self, write_api, mock_client):
        customer = persisted(Customer(customer_id="a", name="Ann"))

        write_api.transact_write([TransactPut(
            customer,
            condition_expression="attribute_exists(#h)",
            expression_attribute_names={"#h": "customer_id"},
            return_values_on_condition_check_failure="ALL_OLD",
        )])

        assert sent_items(mock_client) == [{"Put": {
            "TableName": "customers",
            "Item": {"customer_id": "a", "name": "Ann"},
            "ConditionExpression": "attribute_exists(#h)",
            "ExpressionAttributeNames": {"#h": "customer_id"},
            "ReturnValuesOnConditionCheckFailure": "ALL_OLD",
        }}]

    def test_put_of_new_record_is_unconditional(self, write_api, mock_client):
        customer = Customer(customer_id="a")

        write_api.transact_write([{"put": customer}])

        assert sent_items(mock_client) == [{"Put": {
            "TableName": "customers",
            "Item": {"customer_id": "a"},
        }}]
        assert customer.state is RecordState.CLEAN

    def test_update_merges_caller_placeholders(self, write_api, mock_client):
        order = persisted(Order(customer_id="a", order_id="o1"))
        order.total = Decimal("10")

        write_api.transact_write([TransactUpdate(
            order,
            condition_expression="#t < :max",
            expression_attribute_names={"#t": "total"},
            expression_attribute_values={":max": 100},
        )])

        update = sent_items(mock_client)[0]["Update"]
        assert update["ExpressionAttributeNames"] == {"#rec_0": "total", "#t": "total"}
        assert update["ExpressionAttributeValues"] == {":rec_0": Decimal("10"), ":max": 100}
        assert update["ConditionExpression"] == "#t < :max"

    def test_update_placeholder_collision(self, write_api, mock_client):
        order = persisted(Order(customer_id="a", order_id="o1"))
        order.total = Decimal("10")

        with pytest.raises(ExpressionAttributeCollision) as exc_info:
            write_api.transact_write([{
                "update": order,
                "expression_attribute_values": {":rec_0": 1},
            }])

        assert exc_info.value.tokens == [":rec_0"]
        mock_client.transact_write_items.assert_not_called()
        assert order.state is RecordState.DIRTY

    def test_unchanged_record_becomes_existence_check(self, write_api, mock_client):
        customer = persisted(Customer(customer_id="a"))

        write_api.transact_write([{"update": customer}])

        assert sent_items(mock_client) == [{"ConditionCheck": {
            "TableName": "customers",
            "Key": {"customer_id": "a"},
            "ConditionExpression": "attribute_exists(#rec_hk)",
            "ExpressionAttributeNames": {"#rec_hk": "customer_id"},
        }}]
        assert customer.state is RecordState.CLEAN

    def test_unchanged_record_keeps_caller_condition(self, write_api, mock_client):
        order = persisted(Order(customer_id="a", order_id="o1", total=Decimal("3")))

        write_api.transact_write([{
            "save": order,
            "condition_expression": "#t < :max",
            "expression_attribute_names": {"#t": "total"},
            "expression_attribute_values": {":max": 10},
            "return_values_on_condition_check_failure": "ALL_OLD",
        }])

        assert sent_items(mock_client) == [{"ConditionCheck": {
            "TableName": "orders",
            "Key": {"customer_id": "a", "order_id": "o1"},
            "ConditionExpression": "#t < :max",
            "ExpressionAttributeNames": {"#t": "total"},
            "ExpressionAttributeValues": {":max": 10},
            "ReturnValuesOnConditionCheckFailure": "ALL_OLD",
        }}]
        assert order.state is RecordState.CLEAN

    def test_unchanged_record_placeholder_collision(self, write_api):
        customer = persisted(Customer(customer_id="a"))

        with pytest.raises(ExpressionAttributeCollision):
            write_api.transact_write([{
                "update": customer,
                "expression_attribute_names": {"#rec_hk": "name"},
            }])

    def test_delete_with_condition(self, write_api, mock_client):
        customer = persisted(Customer(customer_id="a"))

        write_api.transact_write([TransactDelete(
            customer,
            condition_expression="attribute_exists(customer_id)",
        )])

        assert sent_items(mock_client) == [{"Delete": {
            "TableName": "customers",
            "Key": {"customer_id": "a"},
            "ConditionExpression": "attribute_exists(customer_id)",
        }}]
        assert customer.destroyed is True

    def test_check_entry(self, write_api, mock_client):
        check = Order.transact_check_expression(
            key={"customer_id": "a", "order_id": "o1"},
            condition_expression="size(#T) <= :v",
            expression_attribute_names={"#T": "total"},
            expression_attribute_values={":v": 1024},
        )
        customer = Customer(customer_id="a")

        write_api.transact_write([
            TransactCheck(check, return_values_on_condition_check_failure="ALL_OLD"),
            {"save": customer},
        ])

        assert sent_items(mock_client)[0] == {"ConditionCheck": {
            "TableName": "orders",
            "Key": {"customer_id": "a", "order_id": "o1"},
            "ConditionExpression": "size(#T) <= :v",
            "ExpressionAttributeNames": {"#T": "total"},
            "ExpressionAttributeValues": {":v": 1024},
            "ReturnValuesOnConditionCheckFailure": "ALL_OLD",
        }}
        assert customer.state is RecordState.CLEAN

    def test_request_options_passed_through(self, write_api, mock_client):
        write_api.transact_write(
            [{"put": Customer(customer_id="a")}],
            ClientRequestToken="token-1",
            ReturnConsumedCapacity="TOTAL",
        )

        kwargs = mock_client.transact_write_items.call_args.kwargs
        assert kwargs["ClientRequestToken"] == "token-1"
        assert kwargs["ReturnConsumedCapacity"] == "TOTAL"

    def test_returns_raw_response(self, write_api, mock_client):
        mock_client.transact_write_items.return_value = {"ConsumedCapacity": [{"TableName": "customers"}]}

        response = write_api.transact_write([{"put": Customer(customer_id="a")}])

        assert response == {"ConsumedCapacity": [{"TableName": "customers"}]}

    def test_explicit_client_overrides_configured(self, write_api, mock_client):
        other_client = Mock()
        other_client.transact_write_items.return_value = {}

        write_api.transact_write([{"put": Customer(customer_id="a")}], client=other_client)

        other_client.transact_write_items.assert_called_once()
        mock_client.transact_write_items.assert_not_called()


class TestTransactWriteValidation:
    """Test batches rejected before any network call."""

    def test_empty_batch(self, write_api, mock_client):
        with pytest.raises(InvalidTransactItem, match="at least one entry"):
            write_api.transact_write([])

        mock_client.transact_write_items.assert_not_called()

    def test_none_batch(self, write_api):
        with pytest.raises(InvalidTransactItem):
            write_api.transact_write(None)

    def test_duplicate_targets(self, write_api, mock_client):
        first = Customer(customer_id="a")
        second = persisted(Customer(customer_id="a", name="Other"))

        with pytest.raises(InvalidTransactItem, match="both target item") as exc_info:
            write_api.transact_write([{"save": first}, {"delete": second}])

        assert exc_info.value.errors == {"table_name": "customers", "entries": [0, 1]}
        mock_client.transact_write_items.assert_not_called()
        assert first.state is RecordState.NEW
        assert second.destroyed is False

    def test_check_and_write_on_same_item(self, write_api):
        check = Customer.transact_check_expression(
            key={"customer_id": "a"},
            condition_expression="attribute_exists(customer_id)",
        )

        with pytest.raises(InvalidTransactItem):
            write_api.transact_write([{"check": check}, {"put": Customer(customer_id="a")}])

    def test_same_key_in_different_tables_allowed(self, write_api, mock_client):
        write_api.transact_write([
            {"put": Customer(customer_id="a")},
            {"put": Order(customer_id="a", order_id="a")},
        ])

        assert len(sent_items(mock_client)) == 2

    def test_malformed_entry_leaves_batch_untouched(self, write_api, mock_client):
        customer = Customer(customer_id="a")

        with pytest.raises(InvalidTransactItem):
            write_api.transact_write([{"save": customer}, {"save": customer, "put": customer}])

        mock_client.transact_write_items.assert_not_called()
        assert customer.state is RecordState.NEW


class TestTransactWriteFailures:
    """Test that failed commits leave records untouched."""

    def test_client_error_propagates_unchanged(self, write_api, mock_client):
        error = make_client_error("TransactionCanceledException", "Transaction cancelled")
        mock_client.transact_write_items.side_effect = error

        new_customer = Customer(customer_id="a", name="Ann")
        order = persisted(Order(customer_id="b", order_id="o1"))
        order.total = Decimal("1")
        stale = persisted(Customer(customer_id="c"))

        with pytest.raises(type(error)) as exc_info:
            write_api.transact_write([
                {"save": new_customer},
                {"update": order},
                {"delete": stale},
            ])

        assert exc_info.value is error
        assert new_customer.state is RecordState.NEW
        assert new_customer.dirty_attributes() == {"customer_id", "name"}
        assert order.state is RecordState.DIRTY
        assert order.dirty_attributes() == {"total"}
        assert stale.state is RecordState.CLEAN
        assert stale.destroyed is False

    def test_botocore_error_propagates(self, write_api, mock_client):
        mock_client.transact_write_items.side_effect = EndpointConnectionError(endpoint_url="http://localhost:8000")
        customer = Customer(customer_id="a")

        with pytest.raises(EndpointConnectionError):
            write_api.transact_write([{"save": customer}])

        assert customer.state is RecordState.NEW

    def test_failure_is_logged(self, write_api, mock_client, caplog):
        mock_client.transact_write_items.side_effect = make_client_error("ValidationException")

        with pytest.raises(ClientError):
            write_api.transact_write([{"put": Customer(customer_id="a")}])

        assert "Transactional write of 1 items failed" in caplog.text


class TestPlanTransactWrite:
    """Test the pure resolution step."""

    def test_plan_does_not_touch_records(self):
        customer = Customer(customer_id="a", name="Ann")
        stale = persisted(Customer(customer_id="c"))

        plan = plan_transact_write([{"save": customer}, {"delete": stale}])

        assert [list(item) for item in plan.transact_items] == [["Put"], ["Delete"]]
        assert [t.target for t in plan.transitions] == [RecordState.CLEAN, RecordState.DESTROYED]
        assert customer.state is RecordState.NEW
        assert stale.destroyed is False

        plan.apply()

        assert customer.state is RecordState.CLEAN
        assert stale.destroyed is True

    def test_check_has_no_transition(self):
        check = Customer.transact_check_expression(
            key={"customer_id": "z"},
            condition_expression="attribute_exists(customer_id)",
        )

        plan = plan_transact_write([{"check": check}])

        assert plan.transitions == []


class TestModuleLevelTransactWrite:
    """Test the module-level transact_write function."""

    def test_uses_default_client_configuration(self, mock_client):
        with patch.object(default_client_configuration, '_client', mock_client):
            transact_write([{"put": Customer(customer_id="a")}])

        mock_client.transact_write_items.assert_called_once()

    def test_explicit_client(self, mock_client):
        customer = Customer(customer_id="a")

        transact_write([{"save": customer}], client=mock_client)

        mock_client.transact_write_items.assert_called_once()
        assert customer.state is RecordState.CLEAN
