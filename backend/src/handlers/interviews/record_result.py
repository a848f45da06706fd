"""
Record Interview Result Lambda Handler.
POST /employer/interviews/{interviewId}/result
"""
from shared import interviews
from shared.auth import is_admin, require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param, parse_body


def handler(event, context):
    """
    Complete a scheduled interview.

    Request body:
    {
        "result": "selected" | "rejected",
        "feedback": "Strong communication skills"
    }
    """
    log_event(event)

    try:
        actor_id = require_user(event, Role.EMPLOYER, Role.ADMIN)
        interview_id = get_path_param(event, 'interviewId')
        if not interview_id:
            raise ValidationError("interviewId is required")

        body = parse_body(event)
        result = interviews.record_result(
            interview_id,
            body.get('result'),
            actor_id,
            feedback=body.get('feedback'),
            as_admin=is_admin(event)
        )

        return format_response(200, result)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error recording interview result: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
