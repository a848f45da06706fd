"""
SQS utility functions for message operations.
"""
import boto3
import json
from typing import List, Dict, Any
from botocore.exceptions import ClientError, BotoCoreError
from .config import config
from .logging import logger
from .exceptions import DependencyUnavailable

sqs = boto3.client('sqs', region_name=config.AWS_REGION)

# SQS batch limit is 10 messages
SQS_BATCH_LIMIT = 10


def send_message_batch(queue_url: str, messages: List[Dict[str, Any]]) -> int:
    """
    Send multiple messages to SQS queue (max 10 per batch).

    Args:
        queue_url: SQS queue URL
        messages: List of message bodies

    Returns:
        Number of messages accepted by SQS

    Raises:
        DependencyUnavailable: if any message could not be delivered
    """
    sent = 0
    try:
        for i in range(0, len(messages), SQS_BATCH_LIMIT):
            batch = messages[i:i + SQS_BATCH_LIMIT]
            entries = [
                {
                    'Id': str(idx),
                    'MessageBody': json.dumps(msg, default=str)
                }
                for idx, msg in enumerate(batch)
            ]

            response = sqs.send_message_batch(
                QueueUrl=queue_url,
                Entries=entries
            )

            failed = response.get('Failed') or []
            sent += len(batch) - len(failed)
            if failed:
                logger.warning(f"Some messages failed: {failed}")
                raise DependencyUnavailable(
                    "Some notifications were not delivered",
                    failed=len(failed)
                )

        logger.info(f"Sent {sent} messages to {queue_url}")
        return sent

    except (ClientError, BotoCoreError) as e:
        logger.error(f"Error sending batch to SQS: {e}")
        raise DependencyUnavailable("Notification queue unavailable") from e
