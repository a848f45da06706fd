"""
Publish Changes Handler.
Triggered by DynamoDB Streams on the profiles, worker_documents and
worker_interviews tables. Forwards cache-invalidation notices to SQS so
dashboards can refresh; consumers re-read the tables before acting.
"""
from typing import List

from shared.change_feed import ChangeEvent, ChangeFeed
from shared.config import config
from shared.logging import logger
from shared.sqs import send_message_batch

feed = ChangeFeed()
_pending: List[dict] = []


def _queue_notice(event: ChangeEvent) -> None:
    notice = event.to_notice()
    if event.table == config.PROFILES_TABLE and event.changed('workerStatus'):
        notice['workerStatus'] = (event.new_image or {}).get('workerStatus')
    _pending.append(notice)


for _table in (config.PROFILES_TABLE, config.WORKER_DOCUMENTS_TABLE, config.WORKER_INTERVIEWS_TABLE):
    if _table:
        feed.subscribe(_table, _queue_notice)


def handler(event, context):
    records = event.get('Records') or []
    if not records:
        return {'message': 'No records to process'}

    _pending.clear()
    feed.dispatch(records)

    sent = 0
    if _pending and config.CHANGE_NOTIFICATIONS_QUEUE_URL:
        sent = send_message_batch(config.CHANGE_NOTIFICATIONS_QUEUE_URL, list(_pending))
    elif _pending:
        logger.warning("CHANGE_NOTIFICATIONS_QUEUE_URL not set, dropping notices")

    logger.info(f"Processed {len(records)} stream records, published {sent} notices")
    return {'message': f'Published {sent} notices'}
