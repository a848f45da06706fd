"""
Get Onboarding Lambda Handler.
GET /workers/{workerId}/onboarding
"""
from shared.auth import get_user_groups, require_user
from shared.exceptions import Forbidden, MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.onboarding import onboarding_progress
from shared.s3_utils import document_url, employer_document_url
from shared.utils import error_response, format_response, get_path_param


def handler(event, context):
    """
    Worker onboarding dashboard: status, next steps, document progress and
    interview countdown. Workers may only read their own progress.
    """
    log_event(event)

    try:
        user_id = require_user(event)
        worker_id = get_path_param(event, 'workerId')
        if not worker_id:
            raise ValidationError("workerId is required")

        groups = get_user_groups(event)
        if worker_id != user_id and not {Role.ADMIN, Role.EMPLOYER} & set(groups):
            raise Forbidden("Workers can only view their own onboarding")

        progress = onboarding_progress(worker_id)
        sign = employer_document_url if progress['role'] == Role.EMPLOYER else document_url
        for doc in progress['documents']:
            doc['fileUrl'] = sign(doc.get('filePath'))

        return format_response(200, progress)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error loading onboarding: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
