"""
List Available Tasks Handler.
GET /worker/tasks
Returns active tasks with free slots. Workers see jobs once their documents
are approved; only active employees may submit work on them.
"""
from shared import tasks
from shared.auth import require_user
from shared.exceptions import MarketplaceError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response


def handler(event, context):
    log_event(event)

    try:
        worker_id = require_user(event, Role.WORKER)
        return format_response(200, tasks.list_available_tasks(worker_id))

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error listing available tasks: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
