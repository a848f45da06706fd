"""
Shared fixtures for the backend tests.

The `store` fixture replaces the shared.dynamo read/write helpers with an
in-memory table set. Reads come from seeded items; writes are recorded so
tests can assert on exactly what would be sent to DynamoDB.
"""
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

TABLES = {
    'PROFILES_TABLE': 'profiles',
    'WORKER_DOCUMENTS_TABLE': 'worker_documents',
    'WORKER_INTERVIEWS_TABLE': 'worker_interviews',
    'WORKER_STATUS_LOGS_TABLE': 'worker_status_logs',
    'WORKER_BANK_DETAILS_TABLE': 'worker_bank_details',
    'TASKS_TABLE': 'tasks',
    'TASK_SUBMISSIONS_TABLE': 'task_submissions',
    'TASK_PAYMENT_RECORDS_TABLE': 'task_payment_records',
    'TRANSACTION_PROOFS_TABLE': 'transaction_proofs',
    'WALLET_BALANCES_TABLE': 'wallet_balances',
    'PAYMENT_TRANSACTIONS_TABLE': 'payment_transactions',
    'SUBCATEGORIES_TABLE': 'subcategories',
}

os.environ.setdefault('AWS_REGION', 'us-east-1')
os.environ.setdefault('AWS_DEFAULT_REGION', 'us-east-1')
os.environ.setdefault('AWS_ACCESS_KEY_ID', 'testing')
os.environ.setdefault('AWS_SECRET_ACCESS_KEY', 'testing')
os.environ.setdefault('CHANGE_NOTIFICATIONS_QUEUE_URL', 'https://sqs.us-east-1.amazonaws.com/123456789012/changes')
os.environ.setdefault('WORKER_DOCUMENTS_BUCKET', 'worker-documents')
os.environ.setdefault('TRANSACTION_PROOFS_BUCKET', 'transaction-proofs')
for _name, _table in TABLES.items():
    os.environ.setdefault(_name, _table)


class FakeStore:
    """In-memory stand-in for the shared.dynamo helpers."""

    def __init__(self):
        self.tables = {}
        self.transactions = []
        self.puts = []
        self.updates = []
        self.errors = {}

    # -- seeding / inspection -------------------------------------------

    def add(self, table, item):
        self.tables.setdefault(table, []).append(dict(item))
        return item

    def fail(self, operation, error):
        """Make the next call to `operation` raise `error`."""
        self.errors[operation] = error

    def _raise(self, operation):
        error = self.errors.pop(operation, None)
        if error is not None:
            raise error

    @property
    def last_transaction(self):
        return self.transactions[-1] if self.transactions else []

    def ops(self, table, action=None):
        """All transaction entries touching a table, optionally only 'Put' or 'Update'."""
        found = []
        for transaction in self.transactions:
            for entry in transaction:
                (kind, op), = entry.items()
                if op['TableName'] == table and (action is None or kind == action):
                    found.append(op)
        return found

    # -- shared.dynamo API ----------------------------------------------

    @staticmethod
    def _matches(item, key):
        return all(item.get(k) == v for k, v in key.items())

    def get_item(self, table, key):
        self._raise('get_item')
        for item in self.tables.get(table, []):
            if self._matches(item, key):
                return dict(item)
        return None

    def put_item(self, table, item, condition_expression=None, expression_names=None, expression_values=None):
        self._raise('put_item')
        self.puts.append({'table': table, 'item': item, 'condition': condition_expression})

    def update_item(self, table, key, update_expression, expression_values,
                    expression_names=None, condition_expression=None, return_values='NONE'):
        self._raise('update_item')
        self.updates.append({
            'table': table,
            'key': key,
            'expression': update_expression,
            'values': expression_values,
            'names': expression_names,
            'condition': condition_expression,
        })
        return {}

    def query_index(self, table, key_name, key_value, index_name=None, scan_forward=True):
        self._raise('query_index')
        return [dict(i) for i in self.tables.get(table, []) if i.get(key_name) == key_value]

    def batch_get_items(self, table, keys):
        self._raise('batch_get_items')
        return [
            dict(i) for i in self.tables.get(table, [])
            if any(self._matches(i, key) for key in keys)
        ]

    def scan_in(self, table, attribute, values):
        self._raise('scan_in')
        values = set(values)
        return [dict(i) for i in self.tables.get(table, []) if i.get(attribute) in values]

    def scan_all(self, table):
        self._raise('scan_all')
        return [dict(i) for i in self.tables.get(table, [])]

    def transact_write(self, items):
        self._raise('transact_write')
        if items:
            self.transactions.append(list(items))


@pytest.fixture
def store(monkeypatch):
    from shared import dynamo, taxonomy

    fake = FakeStore()
    for name in ('get_item', 'put_item', 'update_item', 'query_index',
                 'batch_get_items', 'scan_in', 'scan_all', 'transact_write'):
        monkeypatch.setattr(dynamo, name, getattr(fake, name))
    taxonomy.invalidate()
    yield fake
    taxonomy.invalidate()


def make_worker(user_id='worker-1', status='document_upload_pending', **extra):
    profile = {
        'userId': user_id,
        'email': f'{user_id}@example.com',
        'role': 'worker',
        'workerStatus': status,
        'statusVersion': 3,
        'rating': 1,
        'ratingSum': 0,
        'ratingCount': 0,
        'designation': 'L1',
        'createdAt': '2026-01-01T00:00:00+00:00',
    }
    profile.update(extra)
    return profile


def make_employer(user_id='employer-1', status='active_employee', **extra):
    profile = {
        'userId': user_id,
        'email': f'{user_id}@example.com',
        'role': 'employer',
        'workerStatus': status,
        'statusVersion': 1,
        'rating': 3,
    }
    profile.update(extra)
    return profile


def api_event(user_id, groups, body=None, path=None, query=None):
    """API Gateway proxy event with Cognito claims."""
    import json

    return {
        'requestContext': {
            'authorizer': {
                'claims': {
                    'sub': user_id,
                    'email': f'{user_id}@example.com',
                    'cognito:groups': ','.join(groups),
                }
            }
        },
        'pathParameters': path or {},
        'queryStringParameters': query,
        'body': json.dumps(body) if body is not None else None,
    }
