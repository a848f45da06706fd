"""
Reject Application Lambda Handler.
POST /admin/users/{userId}/reject
"""
from shared import interviews
from shared.auth import require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param, parse_body


def handler(event, context):
    """
    Reject a worker or employer that has not yet become active.
    A worker's scheduled interview is cancelled with the rejection.

    Request body:
    {
        "reason": "Documents could not be verified"
    }
    """
    log_event(event)

    try:
        admin_id = require_user(event, Role.ADMIN)
        user_id = get_path_param(event, 'userId')
        if not user_id:
            raise ValidationError("userId is required")

        body = parse_body(event)
        result = interviews.reject_application(user_id, admin_id, reason=body.get('reason'))

        return format_response(200, {
            'message': 'Application rejected',
            'userId': user_id,
            **result,
        })

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error rejecting application: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
