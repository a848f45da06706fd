"""
Task creation and lifecycle (active ↔ paused → completed).
Targeting constraints are advisory: they are validated for shape and stored,
but not enforced when workers browse tasks.
"""
import uuid
from typing import Any, Dict, List, Optional

from . import dynamo, taxonomy, worker_status
from .config import config
from .exceptions import Forbidden, IllegalTransition, NotFound, ValidationError
from .logging import logger
from .models import Role, TaskStatus, WorkerStatus
from .utils import is_blank, to_decimal, utc_now_iso

# Valid transitions: {from_status: {allowed_to_statuses}}
_TASK_TRANSITIONS = {
    TaskStatus.ACTIVE: {TaskStatus.PAUSED, TaskStatus.COMPLETED},
    TaskStatus.PAUSED: {TaskStatus.ACTIVE, TaskStatus.COMPLETED},
    TaskStatus.COMPLETED: set(),
}


def get_task(task_id: str) -> Dict[str, Any]:
    task = dynamo.get_item(config.TASKS_TABLE, {'taskId': task_id})
    if not task:
        raise NotFound(f"Task {task_id} not found", taskId=task_id)
    return task


def slots_remaining(task: Dict[str, Any]) -> int:
    return max(int(task.get('slots', 0)) - int(task.get('completedSlots', 0)), 0)


def _positive_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number", field=field)
    number = to_decimal(value, field)
    if number % 1 != 0 or number < 1:
        raise ValidationError(f"{field} must be a whole number of at least 1", field=field)
    return int(number)


def _string_list(value: Any, field: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
        raise ValidationError(f"{field} must be a list of non-empty strings", field=field)
    return [v.strip() for v in value]


def validate_targeting(targeting: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Normalize the advisory targeting block of a task."""
    targeting = targeting or {}
    if not isinstance(targeting, dict):
        raise ValidationError("targeting must be an object")

    result = {
        'countries': _string_list(targeting.get('countries'), 'countries'),
        'languages': _string_list(targeting.get('languages'), 'languages'),
        'deviceTypes': _string_list(targeting.get('deviceTypes'), 'deviceTypes'),
    }

    age_range = targeting.get('ageRange')
    if age_range:
        if not isinstance(age_range, dict):
            raise ValidationError("ageRange must be an object with min and max")
        age_min = _positive_int(age_range.get('min'), 'ageRange.min')
        age_max = _positive_int(age_range.get('max'), 'ageRange.max')
        if age_min > age_max:
            raise ValidationError("ageRange.min cannot exceed ageRange.max")
        result['ageRange'] = {'min': age_min, 'max': age_max}

    return result


def create_task(employer_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Create an active task owned by an approved employer.

    Raises:
        Forbidden: caller is not an employer
        IllegalTransition: employer account not yet approved
        ValidationError: missing title, non-positive budget, bad slots or targeting
    """
    profile = worker_status.get_profile(employer_id)
    if profile.get('role') != Role.EMPLOYER:
        raise Forbidden("Only employers can create tasks")
    if profile.get('workerStatus') != WorkerStatus.ACTIVE_EMPLOYEE:
        raise IllegalTransition(
            "Employer account is not yet approved",
            status=profile.get('workerStatus')
        )

    title = data.get('title')
    if is_blank(title):
        raise ValidationError("title is required", field='title')

    budget = to_decimal(data.get('budget'), 'budget')
    if budget <= 0:
        raise ValidationError("budget must be positive", field='budget')

    slots = _positive_int(data.get('slots', 1), 'slots')
    skills = _string_list(data.get('skills'), 'skills')
    category = data.get('category')
    role = data.get('role')
    taxonomy.validate_role_skills(role, skills, category)

    timestamp = utc_now_iso()
    item = {
        'taskId': str(uuid.uuid4()),
        'employerId': employer_id,
        'title': title.strip(),
        'description': (data.get('description') or '').strip(),
        'budget': budget,
        'status': TaskStatus.ACTIVE,
        'slots': slots,
        'completedSlots': 0,
        'skills': skills,
        'targeting': validate_targeting(data.get('targeting')),
        'createdAt': timestamp,
        'updatedAt': timestamp,
    }
    if category:
        item['category'] = category
    if role:
        item['role'] = role

    dynamo.put_item(config.TASKS_TABLE, item, condition_expression='attribute_not_exists(taskId)')
    logger.info(f"Employer {employer_id} created task {item['taskId']} ({slots} slots, budget {budget})")
    return item


def set_task_status(task_id: str, employer_id: str, status: str, as_admin: bool = False) -> Dict[str, Any]:
    """Pause, resume or complete a task."""
    if status not in TaskStatus.ALL:
        raise ValidationError(f"Status must be one of {', '.join(TaskStatus.ALL)}", status=status)

    task = get_task(task_id)
    if not as_admin and task.get('employerId') != employer_id:
        raise Forbidden("Only the task owner can change its status")

    current = task.get('status')
    if current == status:
        return task
    if status not in _TASK_TRANSITIONS.get(current, set()):
        raise IllegalTransition(f"Task cannot move from '{current}' to '{status}'", status=current)

    timestamp = utc_now_iso()
    dynamo.update_item(
        config.TASKS_TABLE,
        {'taskId': task_id},
        'SET #status = :new, updatedAt = :ts',
        {':new': status, ':current': current, ':ts': timestamp},
        expression_names={'#status': 'status'},
        condition_expression='#status = :current'
    )
    logger.info(f"Task {task_id} status {current} -> {status}")
    return {**task, 'status': status, 'updatedAt': timestamp}


def list_available_tasks(worker_id: str) -> Dict[str, Any]:
    """Active tasks with free slots, for workers whose status allows browsing."""
    profile = worker_status.get_profile(worker_id)
    status = profile.get('workerStatus')
    if not worker_status.can_access_jobs(status):
        raise Forbidden("Job access opens once your documents are approved", status=status)

    tasks = dynamo.query_index(config.TASKS_TABLE, 'status', TaskStatus.ACTIVE, index_name='StatusIndex')
    available = []
    for task in tasks:
        remaining = slots_remaining(task)
        if remaining > 0:
            available.append({**task, 'slotsRemaining': remaining})

    available.sort(key=lambda t: t.get('createdAt', ''), reverse=True)
    return {
        'tasks': available,
        'totalTasks': len(available),
        'canSubmitTasks': worker_status.can_submit_tasks(status),
    }
