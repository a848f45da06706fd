"""
List Workers Lambda Handler.
GET /employer/workers?status=<workerStatus>
"""
from shared.auth import require_user
from shared.exceptions import MarketplaceError
from shared.logging import logger, log_event
from shared.models import Role
from shared.onboarding import worker_overviews
from shared.utils import error_response, format_response, get_query_param


def handler(event, context):
    """Employer/admin view of all workers with document and interview progress."""
    log_event(event)

    try:
        require_user(event, Role.EMPLOYER, Role.ADMIN)
        workers = worker_overviews(get_query_param(event, 'status'))

        return format_response(200, {
            'workers': workers,
            'totalWorkers': len(workers),
        })

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error listing workers: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
