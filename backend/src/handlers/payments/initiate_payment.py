"""
Initiate Payment Lambda Handler.
POST /employer/payments
"""
from shared import payments
from shared.auth import require_user
from shared.exceptions import MarketplaceError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, parse_body


def handler(event, context):
    """
    Create the bank-transfer payment record for a worker's task.
    Calling again for the same task and worker returns the same record.

    Request body:
    {
        "taskId": "...",
        "workerId": "...",
        "amount": 1500
    }
    """
    log_event(event)

    try:
        employer_id = require_user(event, Role.EMPLOYER)
        body = parse_body(event)

        result = payments.initiate(
            body.get('taskId'),
            body.get('workerId'),
            employer_id,
            body.get('amount')
        )

        return format_response(200 if result['reused'] else 201, result)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error initiating payment: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
