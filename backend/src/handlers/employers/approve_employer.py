"""
Approve Employer Lambda Handler.
POST /admin/employers/{employerId}/approve
"""
from shared import worker_status
from shared.auth import require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param, parse_body
from shared.worker_status import Trigger


def handler(event, context):
    """Move an employer from verification_pending to active_employee."""
    log_event(event)

    try:
        admin_id = require_user(event, Role.ADMIN)
        employer_id = get_path_param(event, 'employerId')
        if not employer_id:
            raise ValidationError("employerId is required")

        body = parse_body(event)
        new_status = worker_status.advance(
            employer_id,
            Trigger.EMPLOYER_APPROVED,
            actor_id=admin_id,
            notes=body.get('notes')
        )

        return format_response(200, {
            'message': 'Employer approved',
            'employerId': employer_id,
            'workerStatus': new_status,
        })

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error approving employer: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
