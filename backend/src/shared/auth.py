"""
Authentication utilities for extracting user info from Cognito tokens.
Authentication itself is done by Cognito; handlers only read the claims.
"""
from typing import Optional

from .exceptions import Forbidden
from .models import Role


def get_user_sub(event: dict) -> Optional[str]:
    """
    Extract user sub (unique ID) from Cognito authorizer claims.

    Args:
        event: API Gateway Lambda proxy event

    Returns:
        User sub string or None if not authenticated
    """
    try:
        return event['requestContext']['authorizer']['claims']['sub']
    except (KeyError, TypeError):
        return None


def get_user_groups(event: dict) -> list:
    """Extract user groups (admin, employer, worker) from Cognito claims."""
    try:
        groups = event['requestContext']['authorizer']['claims'].get('cognito:groups', '')
        if isinstance(groups, str):
            return groups.split(',') if groups else []
        return groups or []
    except (KeyError, TypeError, AttributeError):
        return []


def is_admin(event: dict) -> bool:
    """Check if user belongs to admin group."""
    return Role.ADMIN in get_user_groups(event)


def require_user(event: dict, *roles: str) -> str:
    """
    Return the caller's user id, checking group membership when roles are given.

    Raises:
        Forbidden: unauthenticated, or in none of the given groups
    """
    user_id = get_user_sub(event)
    if not user_id:
        raise Forbidden("Authentication required")
    if roles and not set(roles) & set(get_user_groups(event)):
        raise Forbidden(f"Requires one of: {', '.join(roles)}")
    return user_id
