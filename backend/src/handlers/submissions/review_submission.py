"""
Review Submission Lambda Handler.
POST /submissions/{submissionId}/review
"""
from shared import submissions
from shared.auth import is_admin, require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param, parse_body


def handler(event, context):
    """
    Approve or reject a pending submission.

    Request body:
    {
        "decision": "approved" | "rejected",
        "notes": "Missing 12 labels"
    }
    """
    log_event(event)

    try:
        reviewer_id = require_user(event, Role.EMPLOYER, Role.ADMIN)
        submission_id = get_path_param(event, 'submissionId')
        if not submission_id:
            raise ValidationError("submissionId is required")

        body = parse_body(event)
        result = submissions.decide(
            submission_id,
            body.get('decision'),
            reviewer_id,
            notes=body.get('notes'),
            as_admin=is_admin(event)
        )

        return format_response(200, result)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error reviewing submission: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
