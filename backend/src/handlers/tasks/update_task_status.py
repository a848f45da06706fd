"""
Update Task Status Lambda Handler.
POST /employer/tasks/{taskId}/status
"""
from shared import tasks
from shared.auth import is_admin, require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param, parse_body


def handler(event, context):
    """
    Pause, resume or complete a task.

    Request body:
    {
        "status": "active" | "paused" | "completed"
    }
    """
    log_event(event)

    try:
        employer_id = require_user(event, Role.EMPLOYER, Role.ADMIN)
        task_id = get_path_param(event, 'taskId')
        if not task_id:
            raise ValidationError("taskId is required")

        body = parse_body(event)
        task = tasks.set_task_status(task_id, employer_id, body.get('status'), as_admin=is_admin(event))
        return format_response(200, task)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error updating task status: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
