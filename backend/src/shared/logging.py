"""
Logging for the marketplace Lambdas.

All modules log through the single 'workforce' logger. log_event() writes a
one-line summary of the triggering event: the route and caller for API
Gateway requests, the trigger source for Cognito, and the record count per
table for DynamoDB streams. Request bodies and headers are never logged since
they carry bank details and document paths.
"""
import json
import logging

from .config import config

logger = logging.getLogger('workforce')
logger.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

if not logger.handlers:
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s [%(name)s] %(message)s'
    ))
    logger.addHandler(_handler)


def _event_summary(event: dict) -> dict:
    if 'Records' in event:
        sources = {}
        for record in event['Records']:
            source = record.get('eventSourceARN', record.get('eventSource', 'unknown'))
            sources[source] = sources.get(source, 0) + 1
        return {'records': sources}

    if 'triggerSource' in event:
        return {'trigger': event['triggerSource'], 'userName': event.get('userName')}

    claims = (event.get('requestContext') or {}).get('authorizer', {}).get('claims', {})
    return {
        'method': event.get('httpMethod'),
        'resource': event.get('resource'),
        'pathParameters': event.get('pathParameters'),
        'queryStringParameters': event.get('queryStringParameters'),
        'caller': claims.get('sub'),
        'groups': claims.get('cognito:groups'),
    }


def log_event(event: dict) -> None:
    """Log what triggered this invocation, without payloads."""
    try:
        logger.info(f"Lambda event: {json.dumps(_event_summary(event), default=str)}")
    except (TypeError, ValueError, AttributeError) as e:
        logger.warning(f"Could not log event: {e}")
