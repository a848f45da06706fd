"""
Complete Payment Lambda Handler.
POST /payments/{paymentId}/complete
"""
from shared import payments
from shared.auth import is_admin, require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param


def handler(event, context):
    """
    Complete a processing payment that has a transaction proof.
    The worker's wallet is credited in the same transaction.
    """
    log_event(event)

    try:
        actor_id = require_user(event, Role.EMPLOYER, Role.ADMIN)
        payment_id = get_path_param(event, 'paymentId')
        if not payment_id:
            raise ValidationError("paymentId is required")

        result = payments.complete(payment_id, actor_id, as_admin=is_admin(event))
        return format_response(200, result)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error completing payment: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
