"""
Save Bank Details Lambda Handler.
PUT /worker/bank-details
"""
from shared import payments
from shared.auth import require_user
from shared.exceptions import MarketplaceError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, parse_body


def handler(event, context):
    """
    Add or replace the caller's payout bank details.

    Request body:
    {
        "accountHolderName": "Asha Rao",
        "bankName": "State Bank of India",
        "accountNumber": "123456789012",
        "ifscCode": "SBIN0001234",
        "branchName": "MG Road",        (optional)
        "upiId": "asha@sbi"             (optional)
    }
    """
    log_event(event)

    try:
        worker_id = require_user(event, Role.WORKER)
        result = payments.save_bank_details(worker_id, parse_body(event))

        details = dict(result['bankDetails'])
        details['accountNumber'] = payments.mask_account_number(details['accountNumber'])

        return format_response(201 if result['created'] else 200, {
            'message': 'Bank details saved',
            'bankDetails': details,
        })

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error saving bank details: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
