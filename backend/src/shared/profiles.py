"""
Profile creation and role normalization.
Profiles are created once at registration and never hard-deleted.
"""
from typing import Any, Dict, Optional

from . import dynamo
from .config import config
from .exceptions import ConflictError, ValidationError
from .logging import logger
from .models import Designation, Role, WorkerStatus
from .ratings import DEFAULT_EMPLOYER_RATING, DEFAULT_WORKER_RATING
from .utils import is_blank, utc_now_iso

# Legacy spellings accepted from sign-up forms
_ROLE_ALIASES = {
    'employee': Role.EMPLOYER,
}

_INITIAL_STATUS = {
    Role.WORKER: WorkerStatus.DOCUMENT_UPLOAD_PENDING,
    Role.EMPLOYER: WorkerStatus.VERIFICATION_PENDING,
}


def validate_role(role: Optional[str], default: str = Role.WORKER) -> str:
    """Normalize a role string; unknown values fall back to the default."""
    if not role or not isinstance(role, str):
        return default
    normalized = role.strip().lower()
    normalized = _ROLE_ALIASES.get(normalized, normalized)
    return normalized if normalized in Role.ALL else default


def create_profile(
    user_id: str,
    email: str,
    full_name: Optional[str] = None,
    phone: Optional[str] = None,
    role: Optional[str] = None,
    category: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create the profile for a newly registered user.
    Returns the existing profile unchanged if one already exists.
    """
    if is_blank(user_id) or is_blank(email):
        raise ValidationError("userId and email are required")

    role = validate_role(role)
    timestamp = utc_now_iso()
    item = {
        'userId': user_id,
        'email': email,
        'role': role,
        'createdAt': timestamp,
        'updatedAt': timestamp,
    }
    if full_name:
        item['fullName'] = full_name
    if phone:
        item['phone'] = phone
    if category:
        item['category'] = category

    if role in _INITIAL_STATUS:
        item['workerStatus'] = _INITIAL_STATUS[role]
        item['statusVersion'] = 0
        item['ratingSum'] = 0
        item['ratingCount'] = 0
    if role == Role.WORKER:
        item['rating'] = DEFAULT_WORKER_RATING
        item['designation'] = Designation.L1
    elif role == Role.EMPLOYER:
        item['rating'] = DEFAULT_EMPLOYER_RATING

    try:
        dynamo.put_item(
            config.PROFILES_TABLE,
            item,
            condition_expression='attribute_not_exists(userId)'
        )
    except ConflictError:
        logger.info(f"Profile already exists for {user_id}")
        return dynamo.get_item(config.PROFILES_TABLE, {'userId': user_id})

    logger.info(f"Created {role} profile for {user_id}")
    return item


def list_profiles(role: str) -> list:
    """All profiles with the given role."""
    return dynamo.query_index(config.PROFILES_TABLE, 'role', role, index_name='RoleIndex')
