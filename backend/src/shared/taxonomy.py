"""
Role/skill taxonomy backed by the subcategories configuration table.

Each row is {subcategoryId, categoryName, name, description, skills}. The
subcategory name is the task role; skills are the allowed skill tags for it.
"""
import time
from typing import Dict, List, Optional, Set

from . import dynamo
from .config import config
from .exceptions import ValidationError
from .logging import logger

_cache = {'loaded_at': 0.0, 'roles': None}


def _load() -> Dict[str, Dict]:
    roles = {}
    for row in dynamo.scan_all(config.SUBCATEGORIES_TABLE):
        name = row.get('name')
        if not name:
            continue
        roles[name.lower()] = {
            'name': name,
            'category': row.get('categoryName'),
            'skills': set(row.get('skills') or []),
        }
    logger.info(f"Loaded {len(roles)} task roles from taxonomy")
    return roles


def get_roles(now: Optional[float] = None) -> Dict[str, Dict]:
    """Role name (lowercase) -> {name, category, skills}, cached for TAXONOMY_CACHE_SECONDS."""
    now = time.monotonic() if now is None else now
    if _cache['roles'] is None or now - _cache['loaded_at'] > config.TAXONOMY_CACHE_SECONDS:
        _cache['roles'] = _load()
        _cache['loaded_at'] = now
    return _cache['roles']


def invalidate() -> None:
    _cache['roles'] = None


def skills_for_role(role: str) -> Set[str]:
    entry = get_roles().get((role or '').lower())
    return set(entry['skills']) if entry else set()


def validate_role_skills(role: Optional[str], skills: Optional[List[str]], category: Optional[str] = None) -> None:
    """
    Check a task's role and skills against the taxonomy.
    No-op when no taxonomy table is configured.

    Raises:
        ValidationError: unknown role, role outside category, or unknown skills
    """
    if not config.SUBCATEGORIES_TABLE or not role:
        return

    entry = get_roles().get(role.lower())
    if not entry:
        raise ValidationError(f"Unknown role {role!r}", role=role)
    if category and entry['category'] and entry['category'].lower() != category.lower():
        raise ValidationError(f"Role {role!r} is not in category {category!r}", role=role, category=category)

    unknown = sorted(set(skills or []) - entry['skills'])
    if unknown:
        raise ValidationError(f"Skills not valid for {role}: {', '.join(unknown)}", skills=unknown)
