"""
Change feed over DynamoDB Streams.

Stream records are turned into ChangeEvents and handed to the callbacks
subscribed for the record's table. Consumers use these only to refresh or
invalidate their views; decisions are always re-read from the tables.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from boto3.dynamodb.types import TypeDeserializer

from .logging import logger

_deserializer = TypeDeserializer()


@dataclass
class ChangeEvent:
    table: str
    event_name: str  # INSERT, MODIFY or REMOVE
    keys: Dict[str, Any]
    new_image: Optional[Dict[str, Any]] = None
    old_image: Optional[Dict[str, Any]] = None
    sequence_number: Optional[str] = None

    def changed(self, attribute: str) -> bool:
        """True when the attribute differs between the old and new image."""
        old = (self.old_image or {}).get(attribute)
        new = (self.new_image or {}).get(attribute)
        return old != new

    def to_notice(self) -> Dict[str, Any]:
        """Minimal cache-invalidation notice for downstream consumers."""
        notice = {'table': self.table, 'eventName': self.event_name, 'keys': self.keys}
        if self.sequence_number:
            notice['sequenceNumber'] = self.sequence_number
        return notice


def _deserialize(image: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if image is None:
        return None
    return {k: _deserializer.deserialize(v) for k, v in image.items()}


def table_from_arn(arn: str) -> str:
    """
    'arn:aws:dynamodb:region:acct:table/<name>/stream/<label>' -> '<name>'
    """
    try:
        return arn.split(':table/', 1)[1].split('/', 1)[0]
    except (AttributeError, IndexError):
        return ''


def parse_record(record: Dict[str, Any]) -> ChangeEvent:
    data = record.get('dynamodb', {})
    return ChangeEvent(
        table=table_from_arn(record.get('eventSourceARN', '')),
        event_name=record.get('eventName', ''),
        keys=_deserialize(data.get('Keys')) or {},
        new_image=_deserialize(data.get('NewImage')),
        old_image=_deserialize(data.get('OldImage')),
        sequence_number=data.get('SequenceNumber'),
    )


@dataclass
class ChangeFeed:
    """Routes stream records to per-table subscribers."""
    subscribers: Dict[str, List[Callable[[ChangeEvent], None]]] = field(default_factory=dict)

    def subscribe(self, table: str, callback: Callable[[ChangeEvent], None]) -> None:
        self.subscribers.setdefault(table, []).append(callback)

    def dispatch(self, records: List[Dict[str, Any]]) -> int:
        """
        Deliver every record to its table's subscribers.

        Returns:
            Number of events delivered to at least one subscriber
        """
        delivered = 0
        for record in records:
            event = parse_record(record)
            callbacks = self.subscribers.get(event.table)
            if not callbacks:
                logger.info(f"No subscribers for {event.table or 'unknown table'}, skipping {event.event_name}")
                continue
            for callback in callbacks:
                callback(event)
            delivered += 1
        return delivered
