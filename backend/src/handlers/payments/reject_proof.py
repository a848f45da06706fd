"""
Reject Transaction Proof Lambda Handler.
POST /admin/payments/{paymentId}/proof/reject
"""
from shared import payments
from shared.auth import require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param, parse_body


def handler(event, context):
    """
    Reject a pending proof; the employer can then attach a new one.

    Request body:
    {
        "notes": "Reference does not match bank statement"
    }
    """
    log_event(event)

    try:
        admin_id = require_user(event, Role.ADMIN)
        payment_id = get_path_param(event, 'paymentId')
        if not payment_id:
            raise ValidationError("paymentId is required")

        body = parse_body(event)
        proof = payments.reject_proof(payment_id, admin_id, notes=body.get('notes'))
        return format_response(200, {'proof': proof})

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error rejecting proof: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
