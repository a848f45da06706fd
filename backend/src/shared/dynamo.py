"""
DynamoDB utility functions.

Store failures are never swallowed here: conditional-check failures become
ConflictError and everything else becomes DependencyUnavailable, so callers
can tell "lost a race" from "store unreachable".
"""
import boto3
from typing import List, Dict, Any, Optional, Iterable
from boto3.dynamodb.conditions import Key, Attr
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError, BotoCoreError
from .config import config
from .logging import logger
from .exceptions import ConflictError, DependencyUnavailable

dynamodb = boto3.resource('dynamodb', region_name=config.AWS_REGION)
client = boto3.client('dynamodb', region_name=config.AWS_REGION)

_serializer = TypeSerializer()

# DynamoDB service limits
BATCH_GET_LIMIT = 100
IN_OPERAND_LIMIT = 100
MAX_UNPROCESSED_RETRIES = 5


def _raise_store_error(e: Exception, action: str, table_name: str):
    """Translate a botocore failure into the platform error taxonomy."""
    if isinstance(e, ClientError):
        code = e.response.get('Error', {}).get('Code', '')
        if code == 'ConditionalCheckFailedException':
            logger.warning(f"Conditional check failed on {action} {table_name}")
            raise ConflictError(f"Concurrent modification detected on {table_name}") from e
        if code == 'TransactionCanceledException':
            reasons = [r.get('Code') for r in e.response.get('CancellationReasons', [])]
            if 'ConditionalCheckFailed' in reasons or 'TransactionConflict' in reasons:
                logger.warning(f"Transaction cancelled by condition: {reasons}")
                raise ConflictError(
                    "Concurrent modification detected, refresh and retry",
                    reasons=reasons
                ) from e
    logger.error(f"Error on {action} {table_name}: {e}")
    raise DependencyUnavailable(f"Data store unavailable during {action}") from e


def serialize(item: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a plain dict into DynamoDB attribute-value format."""
    return {k: _serializer.serialize(v) for k, v in item.items()}


def get_item(table_name: str, key: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Get a single item from DynamoDB (strongly consistent)."""
    try:
        table = dynamodb.Table(table_name)
        response = table.get_item(Key=key, ConsistentRead=True)
        return response.get('Item')
    except (ClientError, BotoCoreError) as e:
        _raise_store_error(e, 'get_item', table_name)


def put_item(
    table_name: str,
    item: Dict[str, Any],
    condition_expression: Optional[str] = None,
    expression_names: Optional[Dict[str, str]] = None,
    expression_values: Optional[Dict[str, Any]] = None
) -> None:
    """Put an item, optionally guarded by a condition expression."""
    try:
        table = dynamodb.Table(table_name)
        params = {'Item': item}
        if condition_expression:
            params['ConditionExpression'] = condition_expression
        if expression_names:
            params['ExpressionAttributeNames'] = expression_names
        if expression_values:
            params['ExpressionAttributeValues'] = expression_values
        table.put_item(**params)
    except (ClientError, BotoCoreError) as e:
        _raise_store_error(e, 'put_item', table_name)


def update_item(
    table_name: str,
    key: Dict[str, Any],
    update_expression: str,
    expression_values: Dict[str, Any],
    expression_names: Optional[Dict[str, str]] = None,
    condition_expression: Optional[str] = None,
    return_values: str = 'NONE'
) -> Dict[str, Any]:
    """Update an item in DynamoDB. Returns the requested attributes, if any."""
    try:
        table = dynamodb.Table(table_name)

        params = {
            'Key': key,
            'UpdateExpression': update_expression,
            'ExpressionAttributeValues': expression_values,
            'ReturnValues': return_values
        }

        if expression_names:
            params['ExpressionAttributeNames'] = expression_names
        if condition_expression:
            params['ConditionExpression'] = condition_expression

        response = table.update_item(**params)
        return response.get('Attributes', {})

    except (ClientError, BotoCoreError) as e:
        _raise_store_error(e, 'update_item', table_name)


def query_index(
    table_name: str,
    key_name: str,
    key_value: Any,
    index_name: Optional[str] = None,
    scan_forward: bool = True
) -> List[Dict[str, Any]]:
    """
    Query a table or GSI by partition key, following pagination.

    Args:
        table_name: Name of the DynamoDB table
        key_name: Partition key attribute of the table or index
        key_value: Partition key value
        index_name: Optional GSI name
        scan_forward: True for ascending sort key order

    Returns:
        All items under the partition key
    """
    try:
        table = dynamodb.Table(table_name)

        query_params = {
            'KeyConditionExpression': Key(key_name).eq(key_value),
            'ScanIndexForward': scan_forward
        }
        if index_name:
            query_params['IndexName'] = index_name

        items = []
        while True:
            response = table.query(**query_params)
            items.extend(response.get('Items', []))
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                return items
            query_params['ExclusiveStartKey'] = last_key

    except (ClientError, BotoCoreError) as e:
        _raise_store_error(e, 'query', table_name)


def batch_get_items(table_name: str, keys: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Fetch many items by primary key in as few round trips as possible.
    Handles the 100-key batch limit and retries unprocessed keys.
    """
    items = []
    if not keys:
        return items

    try:
        for i in range(0, len(keys), BATCH_GET_LIMIT):
            request = {table_name: {'Keys': keys[i:i + BATCH_GET_LIMIT], 'ConsistentRead': True}}
            attempts = 0
            while request:
                response = dynamodb.batch_get_item(RequestItems=request)
                items.extend(response.get('Responses', {}).get(table_name, []))
                request = response.get('UnprocessedKeys') or None
                attempts += 1
                if request and attempts >= MAX_UNPROCESSED_RETRIES:
                    raise DependencyUnavailable(
                        f"Could not read all keys from {table_name}",
                        unprocessed=len(request[table_name]['Keys'])
                    )
        return items

    except (ClientError, BotoCoreError) as e:
        _raise_store_error(e, 'batch_get_item', table_name)


def _scan(table_name: str, filter_expression: Any = None) -> List[Dict[str, Any]]:
    table = dynamodb.Table(table_name)
    params = {}
    if filter_expression is not None:
        params['FilterExpression'] = filter_expression

    items = []
    while True:
        response = table.scan(**params)
        items.extend(response.get('Items', []))
        last_key = response.get('LastEvaluatedKey')
        if not last_key:
            return items
        params['ExclusiveStartKey'] = last_key


def scan_in(table_name: str, attribute: str, values: Iterable[Any]) -> List[Dict[str, Any]]:
    """
    Load every item whose attribute is one of the given values.
    Set-based replacement for looping a query per value.
    """
    values = list(dict.fromkeys(values))
    items = []
    try:
        for i in range(0, len(values), IN_OPERAND_LIMIT):
            chunk = values[i:i + IN_OPERAND_LIMIT]
            items.extend(_scan(table_name, Attr(attribute).is_in(chunk)))
        return items
    except (ClientError, BotoCoreError) as e:
        _raise_store_error(e, 'scan', table_name)


def scan_all(table_name: str) -> List[Dict[str, Any]]:
    """Read a whole (small, configuration-sized) table."""
    try:
        return _scan(table_name)
    except (ClientError, BotoCoreError) as e:
        _raise_store_error(e, 'scan', table_name)


# =============================================================================
# Transactions
# =============================================================================

def put_op(
    table_name: str,
    item: Dict[str, Any],
    condition: Optional[str] = None,
    names: Optional[Dict[str, str]] = None,
    values: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Build a Put entry for transact_write (plain Python values)."""
    op = {'TableName': table_name, 'Item': item}
    if condition:
        op['ConditionExpression'] = condition
    if names:
        op['ExpressionAttributeNames'] = names
    if values:
        op['ExpressionAttributeValues'] = values
    return {'Put': op}


def update_op(
    table_name: str,
    key: Dict[str, Any],
    update_expression: str,
    values: Dict[str, Any],
    names: Optional[Dict[str, str]] = None,
    condition: Optional[str] = None
) -> Dict[str, Any]:
    """Build an Update entry for transact_write (plain Python values)."""
    op = {
        'TableName': table_name,
        'Key': key,
        'UpdateExpression': update_expression,
        'ExpressionAttributeValues': values
    }
    if names:
        op['ExpressionAttributeNames'] = names
    if condition:
        op['ConditionExpression'] = condition
    return {'Update': op}


def _serialize_op(entry: Dict[str, Any]) -> Dict[str, Any]:
    (action, op), = entry.items()
    wire = dict(op)
    for field in ('Item', 'Key', 'ExpressionAttributeValues'):
        if field in wire:
            wire[field] = serialize(wire[field])
    return {action: wire}


def transact_write(items: List[Dict[str, Any]]) -> None:
    """
    Write all entries atomically: either every entry applies or none does.

    Raises:
        ConflictError: a condition expression failed (concurrent writer)
        DependencyUnavailable: DynamoDB could not be reached
    """
    if not items:
        return
    tables = sorted({next(iter(entry.values()))['TableName'] for entry in items})
    try:
        client.transact_write_items(TransactItems=[_serialize_op(entry) for entry in items])
        logger.info(f"Transaction committed: {len(items)} writes across {', '.join(tables)}")
    except (ClientError, BotoCoreError) as e:
        _raise_store_error(e, 'transact_write_items', ','.join(tables))
