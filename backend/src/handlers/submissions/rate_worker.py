"""
Rate Worker Lambda Handler.
POST /submissions/{submissionId}/rating
"""
from shared import submissions
from shared.auth import require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param, parse_body


def handler(event, context):
    """
    Rate the worker of an approved submission (1-5 stars, once).

    Request body:
    {
        "rating": 4,
        "feedback": "Accurate and fast"
    }
    """
    log_event(event)

    try:
        employer_id = require_user(event, Role.EMPLOYER)
        submission_id = get_path_param(event, 'submissionId')
        if not submission_id:
            raise ValidationError("submissionId is required")

        body = parse_body(event)
        result = submissions.rate_worker(
            submission_id,
            body.get('rating'),
            employer_id,
            feedback=body.get('feedback')
        )

        return format_response(200, result)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error rating worker: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
