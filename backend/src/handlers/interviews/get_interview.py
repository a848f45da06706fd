"""
Get Interview Lambda Handler.
GET /workers/{workerId}/interview
"""
from shared import interviews
from shared.auth import get_user_groups, require_user
from shared.exceptions import Forbidden, MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param


def handler(event, context):
    """Latest interview for a worker with the countdown to it."""
    log_event(event)

    try:
        user_id = require_user(event)
        worker_id = get_path_param(event, 'workerId')
        if not worker_id:
            raise ValidationError("workerId is required")
        if worker_id != user_id and not {Role.ADMIN, Role.EMPLOYER} & set(get_user_groups(event)):
            raise Forbidden("Workers can only view their own interview")

        interview = interviews.latest_interview(worker_id)
        return format_response(200, {
            'interview': interview,
            'timeRemaining': interviews.time_remaining(interview),
        })

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error loading interview: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
