"""
Schedule Interview Lambda Handler.
POST /employer/interviews
"""
from shared import interviews
from shared.auth import is_admin, require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, parse_body


def handler(event, context):
    """
    Schedule an interview, or reschedule the worker's existing one.

    Request body:
    {
        "workerId": "...",
        "scheduledDate": "2026-11-02T10:30:00Z",
        "mode": "online" | "offline",
        "meetingLink": "https://meet.example.com/abc",   (online)
        "location": "Office 4B, Pune",                   (offline)
        "notes": "Bring original certificates"
    }
    """
    log_event(event)

    try:
        employer_id = require_user(event, Role.EMPLOYER, Role.ADMIN)
        body = parse_body(event)

        worker_id = body.get('workerId')
        if not worker_id:
            raise ValidationError("workerId is required")

        result = interviews.schedule(
            worker_id,
            employer_id,
            body.get('scheduledDate'),
            body.get('mode'),
            location=body.get('location'),
            meeting_link=body.get('meetingLink'),
            notes=body.get('notes'),
            as_admin=is_admin(event)
        )

        return format_response(200 if result['rescheduled'] else 201, result)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error scheduling interview: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
