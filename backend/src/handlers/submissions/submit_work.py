"""
Submit Work Lambda Handler.
POST /worker/tasks/{taskId}/submit
"""
from shared import submissions
from shared.auth import require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, get_path_param, parse_body


def handler(event, context):
    """
    Submit proof of work for a task.

    Request body:
    {
        "proofText": "Completed all 200 labels, see attached export",
        "proofFiles": [
            {"fileName": "labels.txt", "filePath": "<workerId>/labels.txt", "fileSize": 20480}
        ]
    }
    """
    log_event(event)

    try:
        worker_id = require_user(event, Role.WORKER)
        task_id = get_path_param(event, 'taskId')
        if not task_id:
            raise ValidationError("taskId is required")

        body = parse_body(event)
        submission = submissions.submit_work(
            task_id,
            worker_id,
            proof_text=body.get('proofText'),
            proof_files=body.get('proofFiles')
        )

        return format_response(201, {
            'message': 'Submission received',
            'submission': submission,
        })

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error submitting work: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
