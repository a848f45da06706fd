"""
Get Earnings Lambda Handler.
GET /workers/{workerId}/earnings
"""
from shared import payments
from shared.auth import is_admin, require_user
from shared.exceptions import Forbidden, MarketplaceError
from shared.logging import logger, log_event
from shared.utils import error_response, format_response, get_path_param


def handler(event, context):
    """Wallet balance, outstanding payments and recent ledger rows for a worker."""
    log_event(event)

    try:
        user_id = require_user(event)
        worker_id = get_path_param(event, 'workerId') or user_id
        if worker_id != user_id and not is_admin(event):
            raise Forbidden("Workers can only view their own earnings")

        return format_response(200, payments.worker_earnings(worker_id))

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error loading earnings: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
