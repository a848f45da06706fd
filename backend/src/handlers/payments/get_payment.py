"""
Get Payment Lambda Handler.
GET /payments/{paymentId}
"""
from shared import payments
from shared.auth import is_admin, require_user
from shared.exceptions import Forbidden, MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.s3_utils import proof_url
from shared.utils import error_response, format_response, get_path_param


def handler(event, context):
    """Payment record and proof, visible to the payer, the payee and admins."""
    log_event(event)

    try:
        user_id = require_user(event)
        payment_id = get_path_param(event, 'paymentId')
        if not payment_id:
            raise ValidationError("paymentId is required")

        result = payments.get_payment(payment_id)
        payment = result['payment']
        if not is_admin(event) and user_id not in (payment.get('employerId'), payment.get('workerId')):
            raise Forbidden("Not a party to this payment")

        if result['proof']:
            result['proof']['fileUrl'] = proof_url(result['proof'].get('filePath'))

        return format_response(200, result)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error loading payment: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
