"""
Attach Transaction Proof Lambda Handler.
POST /employer/payments/{paymentId}/proof
"""
from shared import payments
from shared.auth import is_admin, require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.s3_utils import is_owned_key, proof_url
from shared.utils import error_response, format_response, get_path_param, parse_body


def handler(event, context):
    """
    Attach the bank-transfer receipt uploaded to the proofs bucket.

    Request body:
    {
        "filePath": "<employerId>/utr-4411.png",
        "fileName": "utr-4411.png",
        "claimedReference": "UTR0004411"
    }
    """
    log_event(event)

    try:
        employer_id = require_user(event, Role.EMPLOYER, Role.ADMIN)
        payment_id = get_path_param(event, 'paymentId')
        if not payment_id:
            raise ValidationError("paymentId is required")

        body = parse_body(event)
        file_path = body.get('filePath')
        admin = is_admin(event)
        if not admin and not is_owned_key(file_path, employer_id):
            raise ValidationError("filePath must point to your own upload folder")

        result = payments.attach_proof(
            payment_id,
            employer_id,
            file_path,
            body.get('fileName'),
            body.get('claimedReference'),
            as_admin=admin
        )
        result['proof']['fileUrl'] = proof_url(file_path)

        return format_response(200, result)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error attaching proof: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
