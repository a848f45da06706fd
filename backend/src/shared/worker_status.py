"""
Status Authority.

Owns profiles.workerStatus. Every status change goes through advance(),
which validates the trigger against the transition table and writes the new
status together with an audit entry in a single transaction. The profile
update is guarded by the observed status and statusVersion, so two writers
racing on the same worker cannot both succeed.

Worker track:
    document_upload_pending → verification_pending → interview_pending
    → interview_scheduled → active_employee
    Any pre-active state → rejected

Employer track (same field):
    verification_pending → active_employee | rejected
"""
import uuid
from typing import Any, Dict, List, Optional

from . import dynamo
from .config import config
from .exceptions import IllegalTransition, NotFound
from .logging import logger
from .models import Role, WorkerStatus
from .utils import utc_now_iso


class Trigger:
    """Events that move a user through the lifecycle."""
    DOCUMENTS_SUBMITTED = 'documents_submitted'
    ALL_DOCUMENTS_APPROVED = 'all_documents_approved'
    INTERVIEW_SCHEDULED = 'interview_scheduled'
    INTERVIEW_CANCELLED = 'interview_cancelled'
    INTERVIEW_SELECTED = 'interview_selected'
    INTERVIEW_REJECTED = 'interview_rejected'
    EMPLOYER_APPROVED = 'employer_approved'
    APPLICATION_REJECTED = 'application_rejected'

    ALL = (
        DOCUMENTS_SUBMITTED,
        ALL_DOCUMENTS_APPROVED,
        INTERVIEW_SCHEDULED,
        INTERVIEW_CANCELLED,
        INTERVIEW_SELECTED,
        INTERVIEW_REJECTED,
        EMPLOYER_APPROVED,
        APPLICATION_REJECTED,
    )


# Valid transitions: {from_status: {trigger: to_status}}
_WORKER_TRANSITIONS: Dict[str, Dict[str, str]] = {
    WorkerStatus.DOCUMENT_UPLOAD_PENDING: {
        Trigger.DOCUMENTS_SUBMITTED: WorkerStatus.VERIFICATION_PENDING,
    },
    WorkerStatus.VERIFICATION_PENDING: {
        Trigger.ALL_DOCUMENTS_APPROVED: WorkerStatus.INTERVIEW_PENDING,
    },
    WorkerStatus.INTERVIEW_PENDING: {
        Trigger.INTERVIEW_SCHEDULED: WorkerStatus.INTERVIEW_SCHEDULED,
    },
    WorkerStatus.INTERVIEW_SCHEDULED: {
        Trigger.INTERVIEW_CANCELLED: WorkerStatus.INTERVIEW_PENDING,
        Trigger.INTERVIEW_SELECTED: WorkerStatus.ACTIVE_EMPLOYEE,
        Trigger.INTERVIEW_REJECTED: WorkerStatus.REJECTED,
    },
    # Re-applying promotion is a no-op
    WorkerStatus.ACTIVE_EMPLOYEE: {
        Trigger.INTERVIEW_SELECTED: WorkerStatus.ACTIVE_EMPLOYEE,
    },
    WorkerStatus.REJECTED: {},
}
for _status in WorkerStatus.PRE_ACTIVE:
    _WORKER_TRANSITIONS[_status][Trigger.APPLICATION_REJECTED] = WorkerStatus.REJECTED

_EMPLOYER_TRANSITIONS: Dict[str, Dict[str, str]] = {
    WorkerStatus.VERIFICATION_PENDING: {
        Trigger.EMPLOYER_APPROVED: WorkerStatus.ACTIVE_EMPLOYEE,
        Trigger.APPLICATION_REJECTED: WorkerStatus.REJECTED,
    },
    WorkerStatus.ACTIVE_EMPLOYEE: {
        Trigger.EMPLOYER_APPROVED: WorkerStatus.ACTIVE_EMPLOYEE,
    },
    WorkerStatus.REJECTED: {},
}


def next_state(current: str, trigger: str, role: str = Role.WORKER) -> str:
    """
    Pure transition function.

    Args:
        current: The stored workerStatus
        trigger: One of Trigger.ALL
        role: 'worker' or 'employer'; selects the transition table

    Returns:
        The status the trigger leads to (may equal current for idempotent promotions)

    Raises:
        IllegalTransition: unknown status, unknown trigger, or trigger not accepted
    """
    if current not in WorkerStatus.ALL:
        raise IllegalTransition(f"Unknown worker status {current!r}", status=current)
    if trigger not in Trigger.ALL:
        raise IllegalTransition(f"Unknown trigger {trigger!r}", trigger=trigger)

    if role == Role.EMPLOYER:
        table = _EMPLOYER_TRANSITIONS
    elif role == Role.WORKER:
        table = _WORKER_TRANSITIONS
    else:
        raise IllegalTransition(f"Role {role!r} has no lifecycle status", role=role)

    allowed = table.get(current, {})
    if trigger not in allowed:
        raise IllegalTransition(
            f"Trigger '{trigger}' is not valid from '{current}' for {role}",
            status=current,
            trigger=trigger,
            allowed=sorted(allowed)
        )
    return allowed[trigger]


def get_profile(user_id: str) -> Dict[str, Any]:
    """Load a profile or raise NotFound."""
    profile = dynamo.get_item(config.PROFILES_TABLE, {'userId': user_id})
    if not profile:
        raise NotFound(f"Profile {user_id} not found", userId=user_id)
    return profile


def _version_guard(profile: Dict[str, Any]):
    """Condition pinning the observed status and statusVersion, plus its values."""
    values = {':current': profile.get('workerStatus')}
    if 'statusVersion' in profile:
        version = int(profile['statusVersion'])
        condition = '#ws = :current AND statusVersion = :version'
        values[':version'] = version
    else:
        version = 0
        condition = '#ws = :current AND attribute_not_exists(statusVersion)'
    values[':next'] = version + 1
    return condition, values


def hold_items(profile: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Transaction entry that bumps statusVersion without changing the status.

    Record writes whose effect on the status depends on sibling records (the
    last document approval, the last upload) include this so that two
    concurrent writers for the same user cannot both commit on a stale view.
    """
    condition, values = _version_guard(profile)
    values[':ts'] = utc_now_iso()
    return [
        dynamo.update_op(
            config.PROFILES_TABLE,
            {'userId': profile['userId']},
            'SET statusVersion = :next, updatedAt = :ts',
            values,
            names={'#ws': 'workerStatus'},
            condition=condition
        )
    ]


def transition_items(
    profile: Dict[str, Any],
    new_status: str,
    trigger: str,
    actor_id: Optional[str] = None,
    notes: Optional[str] = None
) -> List[Dict[str, Any]]:
    """
    Build the transaction entries for a status change: the guarded profile
    update and its audit log entry. Callers compose these with their own
    record writes so both apply atomically.
    """
    user_id = profile['userId']
    current = profile.get('workerStatus')
    timestamp = utc_now_iso()

    condition, values = _version_guard(profile)
    values.update({':new': new_status, ':ts': timestamp})

    log_entry = {
        'logId': str(uuid.uuid4()),
        'workerId': user_id,
        'oldStatus': current,
        'newStatus': new_status,
        'trigger': trigger,
        'createdAt': timestamp,
    }
    if actor_id:
        log_entry['changedBy'] = actor_id
    if notes:
        log_entry['notes'] = notes

    return [
        dynamo.update_op(
            config.PROFILES_TABLE,
            {'userId': user_id},
            'SET #ws = :new, statusVersion = :next, updatedAt = :ts',
            values,
            names={'#ws': 'workerStatus'},
            condition=condition
        ),
        dynamo.put_op(config.WORKER_STATUS_LOGS_TABLE, log_entry),
    ]


def advance(
    user_id: str,
    trigger: str,
    actor_id: Optional[str] = None,
    notes: Optional[str] = None,
    extra_items: Optional[List[Dict[str, Any]]] = None,
    profile: Optional[Dict[str, Any]] = None
) -> str:
    """
    Apply a trigger to a user's status. The single write path for workerStatus.

    Args:
        user_id: Profile to transition
        trigger: One of Trigger.ALL
        actor_id: Who caused the change (audit)
        notes: Free-text audit note
        extra_items: Record writes that must commit together with the transition
        profile: Already-loaded profile, to avoid a second read

    Returns:
        The new status

    Raises:
        IllegalTransition: the current status does not accept the trigger (nothing written)
        ConflictError: the status changed concurrently (nothing written)
    """
    if profile is None:
        profile = get_profile(user_id)
    current = profile.get('workerStatus')
    new_status = next_state(current, trigger, profile.get('role', Role.WORKER))
    items = list(extra_items or [])

    if new_status == current:
        logger.info(f"User {user_id} already {current}, '{trigger}' has no further effect")
        dynamo.transact_write(items)
        return current

    dynamo.transact_write(transition_items(profile, new_status, trigger, actor_id, notes) + items)
    logger.info(f"User {user_id} status {current} -> {new_status} via '{trigger}'")
    return new_status


# =============================================================================
# Read projections (never written back)
# =============================================================================

_STATUS_INFO = {
    WorkerStatus.DOCUMENT_UPLOAD_PENDING: {
        'title': 'Document Upload Required',
        'description': 'Please upload all required documents to continue your registration',
        'nextSteps': [
            'Upload 10th certificate',
            'Upload 12th certificate',
            'Upload graduation certificate',
            'Upload resume/CV',
            'Upload KYC/Government ID',
        ],
    },
    WorkerStatus.VERIFICATION_PENDING: {
        'title': 'Document Verification in Progress',
        'description': 'Your documents are being reviewed by our verification team',
        'nextSteps': [
            'Wait for document verification',
            'Check for any rejection notifications',
            'Re-upload rejected documents if needed',
        ],
    },
    WorkerStatus.INTERVIEW_PENDING: {
        'title': 'Interview Scheduling',
        'description': 'Your documents are approved. An interview will be scheduled soon',
        'nextSteps': [
            'Browse available jobs',
            'Wait for interview scheduling',
            'Prepare for the interview',
        ],
    },
    WorkerStatus.INTERVIEW_SCHEDULED: {
        'title': 'Interview Scheduled',
        'description': 'Your interview has been scheduled. You can browse jobs while waiting',
        'nextSteps': [
            'Browse available jobs',
            'Prepare for your scheduled interview',
        ],
    },
    WorkerStatus.ACTIVE_EMPLOYEE: {
        'title': 'Active Employee',
        'description': 'You can now access and work on tasks',
        'nextSteps': [
            'Browse available jobs',
            'Start working on tasks',
            'Build your rating and reputation',
        ],
    },
    WorkerStatus.REJECTED: {
        'title': 'Application Rejected',
        'description': 'Unfortunately, your application was not approved',
        'nextSteps': [
            'Review rejection feedback',
        ],
    },
}

_JOB_ACCESS = (
    WorkerStatus.INTERVIEW_PENDING,
    WorkerStatus.INTERVIEW_SCHEDULED,
    WorkerStatus.ACTIVE_EMPLOYEE,
)


def can_access_jobs(status: Optional[str]) -> bool:
    """Workers may browse jobs once their documents are approved."""
    return status in _JOB_ACCESS


def can_submit_tasks(status: Optional[str]) -> bool:
    """Only active employees may submit work."""
    return status == WorkerStatus.ACTIVE_EMPLOYEE


def status_info(status: Optional[str]) -> Dict[str, Any]:
    """Display projection of a status for dashboards."""
    known = status if status in _STATUS_INFO else WorkerStatus.DOCUMENT_UPLOAD_PENDING
    info = dict(_STATUS_INFO[known])
    info['status'] = known
    info['canAccessJobs'] = can_access_jobs(known)
    info['canSubmitTasks'] = can_submit_tasks(known)
    return info
