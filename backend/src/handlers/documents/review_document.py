"""
Review Document Lambda Handler.
POST /workers/{workerId}/documents/{documentType}/review
"""
from shared import documents
from shared.auth import is_admin, require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param, parse_body


def handler(event, context):
    """
    Approve or reject a pending document. Employer documents are admin-only.
    The last approval moves the worker to interview_pending.

    Request body:
    {
        "decision": "approved" | "rejected",
        "notes": "Scan is unreadable"
    }
    """
    log_event(event)

    try:
        verifier_id = require_user(event, Role.ADMIN, Role.EMPLOYER)
        worker_id = get_path_param(event, 'workerId')
        document_type = get_path_param(event, 'documentType')
        if not worker_id or not document_type:
            raise ValidationError("workerId and documentType are required")

        body = parse_body(event)
        result = documents.record_decision(
            worker_id,
            document_type,
            body.get('decision'),
            verifier_id,
            notes=body.get('notes'),
            as_admin=is_admin(event)
        )

        return format_response(200, result)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error reviewing document: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
