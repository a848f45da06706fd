"""
Create Task Lambda Handler.
POST /employer/tasks
"""
from shared import tasks
from shared.auth import require_user
from shared.exceptions import MarketplaceError
from shared.logging import logger, log_event
from shared.models import Role
from shared.utils import error_response, format_response, parse_body


def handler(event, context):
    """
    Create a task for an approved employer.

    Request body:
    {
        "title": "Label 200 product photos",
        "description": "...",
        "budget": 1500,
        "slots": 10,
        "category": "Data Annotation",
        "role": "Image Labeler",
        "skills": ["bounding boxes"],
        "targeting": {
            "countries": ["IN"],
            "ageRange": {"min": 18, "max": 40},
            "languages": ["en"],
            "deviceTypes": ["desktop"]
        }
    }
    """
    log_event(event)

    try:
        employer_id = require_user(event, Role.EMPLOYER)
        task = tasks.create_task(employer_id, parse_body(event))
        return format_response(201, task)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error creating task: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
