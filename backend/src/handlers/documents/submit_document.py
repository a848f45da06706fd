"""
Submit Document Lambda Handler.
POST /documents
"""
from shared import documents
from shared.auth import get_user_groups, require_user
from shared.exceptions import MarketplaceError, ValidationError
from shared.logging import logger, log_event
from shared.models import Role
from shared.s3_utils import document_url, employer_document_url, is_owned_key
from shared.utils import error_response, format_response, parse_body


def handler(event, context):
    """
    Record a document the caller has uploaded to their documents bucket.
    Workers upload credentials; employers upload company verification files.

    Request body:
    {
        "documentType": "resume",
        "filePath": "<userId>/resume.pdf",
        "fileName": "resume.pdf",
        "fileSize": 182044,
        "mimeType": "application/pdf"
    }
    """
    log_event(event)

    try:
        user_id = require_user(event, Role.WORKER, Role.EMPLOYER)
        body = parse_body(event)

        file_path = body.get('filePath')
        if not is_owned_key(file_path, user_id):
            raise ValidationError("filePath must point to your own upload folder")

        result = documents.submit_document(
            user_id,
            body.get('documentType'),
            file_path,
            body.get('fileName'),
            file_size=body.get('fileSize') or 0,
            mime_type=body.get('mimeType') or 'application/octet-stream'
        )
        sign = employer_document_url if Role.EMPLOYER in get_user_groups(event) else document_url
        result['document']['fileUrl'] = sign(file_path)

        return format_response(201, result)

    except MarketplaceError as e:
        return error_response(e)
    except Exception as e:
        logger.exception(f"Error submitting document: {e}")
        return format_response(500, {'message': 'Internal Server Error'})
