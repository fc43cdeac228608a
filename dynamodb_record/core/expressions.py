"""
Expression helpers for DynamoDB requests.

Placeholder tokens generated by this library always start with a reserved
prefix (``#rec_`` for attribute names, ``:rec_`` for attribute values). As
long as callers do not use that prefix for their own tokens, merging
generated and caller-supplied placeholder maps can never collide. The merge
still checks every token and raises ExpressionAttributeCollision instead of
silently overwriting one side.
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from ..exceptions import ExpressionAttributeCollision

NAME_PREFIX = "#rec_"
VALUE_PREFIX = ":rec_"

HASH_KEY_TOKEN = f"{NAME_PREFIX}hk"
RANGE_KEY_TOKEN = f"{NAME_PREFIX}rk"

def build_update_expression(
    pairs: Iterable[Tuple[str, Any]]
) -> Tuple[Optional[str], Dict[str, str], Dict[str, Any]]:
    """Build an UpdateExpression from (database attribute name, stored value) pairs.

    A value of None removes the attribute; any other value is SET. Tokens are
    numbered in input order.

    Returns:
        (update_expression, expression_attribute_names, expression_attribute_values).
        The expression is None when there is nothing to change.

    Example:
        >>> build_update_expression([('body', 'hi'), ('ttl', None)])
        ('SET #rec_0 = :rec_0 REMOVE #rec_1', {'#rec_0': 'body', '#rec_1': 'ttl'}, {':rec_0': 'hi'})
    """
    set_parts = []
    remove_parts = []
    names: Dict[str, str] = {}
    values: Dict[str, Any] = {}

    for index, (db_name, value) in enumerate(pairs):
        name_token = f"{NAME_PREFIX}{index}"
        names[name_token] = db_name
        if value is None:
            remove_parts.append(name_token)
            continue
        value_token = f"{VALUE_PREFIX}{index}"
        values[value_token] = value
        set_parts.append(f"{name_token} = {value_token}")

    clauses = []
    if set_parts:
        clauses.append("SET " + ", ".join(set_parts))
    if remove_parts:
        clauses.append("REMOVE " + ", ".join(remove_parts))

    if not clauses:
        return None, {}, {}
    return " ".join(clauses), names, values

def merge_expression_attributes(
    generated: Mapping[str, Any],
    supplied: Optional[Mapping[str, Any]],
    kind: str = "name",
) -> Dict[str, Any]:
    """Merge generated and caller-supplied placeholder maps.

    Args:
        generated: Tokens produced by this library
        supplied: Tokens provided by the caller (may be None)
        kind: 'name' or 'value', used in the error message

    Raises:
        ExpressionAttributeCollision: A token appears in both maps
    """
    merged = dict(generated)
    if not supplied:
        return merged

    collisions = sorted(token for token in supplied if token in merged)
    if collisions:
        raise ExpressionAttributeCollision(
            f"Expression attribute {kind} placeholders collide with generated ones: "
            f"{', '.join(collisions)}. Tokens starting with "
            f"'{NAME_PREFIX if kind == 'name' else VALUE_PREFIX}' are reserved.",
            collisions,
        )
    merged.update(supplied)
    return merged

def prevent_overwrite_condition(hash_key: str, range_key: Optional[str] = None) -> Dict[str, Any]:
    """Condition that only passes when no item with the given key exists yet."""
    conditions = [f"attribute_not_exists({HASH_KEY_TOKEN})"]
    names = {HASH_KEY_TOKEN: hash_key}
    if range_key:
        conditions.append(f"attribute_not_exists({RANGE_KEY_TOKEN})")
        names[RANGE_KEY_TOKEN] = range_key
    return {
        'ConditionExpression': " AND ".join(conditions),
        'ExpressionAttributeNames': names,
    }

def item_exists_condition(hash_key: str) -> Dict[str, Any]:
    """Condition that only passes when an item with the given key exists."""
    return {
        'ConditionExpression': f"attribute_exists({HASH_KEY_TOKEN})",
        'ExpressionAttributeNames': {HASH_KEY_TOKEN: hash_key},
    }

@dataclass(frozen=True)
class CheckExpression:
    """A standalone precondition for a transactional write.

    Built with ``Record.transact_check_expression`` and used in a
    ``TransactCheck`` entry. It never touches a record's lifecycle.
    """

    table_name: str
    key: Dict[str, Any]
    condition_expression: Any
    expression_attribute_names: Optional[Dict[str, str]] = None
    expression_attribute_values: Optional[Dict[str, Any]] = None

    def to_request(self) -> Dict[str, Any]:
        """Render the body of a ``ConditionCheck`` transact item."""
        request = {
            'TableName': self.table_name,
            'Key': dict(self.key),
            'ConditionExpression': self.condition_expression,
        }
        if self.expression_attribute_names:
            request['ExpressionAttributeNames'] = dict(self.expression_attribute_names)
        if self.expression_attribute_values:
            request['ExpressionAttributeValues'] = dict(self.expression_attribute_values)
        return request
