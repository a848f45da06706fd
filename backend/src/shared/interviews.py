"""
Interview Coordinator.

A worker has at most one interview with status 'scheduled'. Scheduling when
one exists reschedules that record in place. Results and cancellations are
written in the same transaction as the worker's status change, so a worker
can never be left 'completed + selected' without being promoted.
"""
import uuid
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from . import dynamo, worker_status
from .config import config
from .exceptions import Forbidden, IllegalTransition, NotFound, ValidationError
from .logging import logger
from .models import InterviewMode, InterviewResult, InterviewStatus, Role, WorkerStatus
from .utils import is_blank, parse_timestamp, utc_now, utc_now_iso
from .worker_status import Trigger

# Mode -> the attribute it requires; the other mode's attribute is removed
_MODE_FIELDS = {
    InterviewMode.ONLINE: 'meetingLink',
    InterviewMode.OFFLINE: 'location',
}

_RESULT_TRIGGERS = {
    InterviewResult.SELECTED: Trigger.INTERVIEW_SELECTED,
    InterviewResult.REJECTED: Trigger.INTERVIEW_REJECTED,
}


def _validate_slot(
    when: Any,
    mode: str,
    location: Optional[str],
    meeting_link: Optional[str],
    now: Optional[datetime]
):
    scheduled = parse_timestamp(when, 'scheduledDate')
    if scheduled <= (now or utc_now()):
        raise ValidationError("Interview must be scheduled in the future", scheduledDate=scheduled.isoformat())

    if mode not in InterviewMode.ALL:
        raise ValidationError(f"Mode must be one of {', '.join(InterviewMode.ALL)}", mode=mode)

    value = meeting_link if mode == InterviewMode.ONLINE else location
    field = _MODE_FIELDS[mode]
    if is_blank(value):
        raise ValidationError(f"{field} is required for {mode} interviews", field=field)
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)

    return scheduled, field, value.strip()


def get_interview(interview_id: str) -> Dict[str, Any]:
    interview = dynamo.get_item(config.WORKER_INTERVIEWS_TABLE, {'interviewId': interview_id})
    if not interview:
        raise NotFound(f"Interview {interview_id} not found", interviewId=interview_id)
    return interview


def worker_interviews(worker_id: str) -> List[Dict[str, Any]]:
    """All interviews for a worker, newest first."""
    items = dynamo.query_index(
        config.WORKER_INTERVIEWS_TABLE, 'workerId', worker_id, index_name='WorkerIndex'
    )
    return sorted(items, key=lambda i: i.get('createdAt', ''), reverse=True)


def active_interview(worker_id: str) -> Optional[Dict[str, Any]]:
    """The worker's scheduled interview, if any."""
    for interview in worker_interviews(worker_id):
        if interview.get('status') == InterviewStatus.SCHEDULED:
            return interview
    return None


def latest_interview(worker_id: str) -> Optional[Dict[str, Any]]:
    interviews = worker_interviews(worker_id)
    return interviews[0] if interviews else None


def interviews_for_workers(worker_ids: Iterable[str]) -> Dict[str, Optional[Dict[str, Any]]]:
    """Latest interview per worker, loaded in one set-based read."""
    worker_ids = list(dict.fromkeys(worker_ids))
    latest = {worker_id: None for worker_id in worker_ids}
    for interview in dynamo.scan_in(config.WORKER_INTERVIEWS_TABLE, 'workerId', worker_ids):
        worker_id = interview['workerId']
        current = latest.get(worker_id)
        if current is None or interview.get('createdAt', '') > current.get('createdAt', ''):
            latest[worker_id] = interview
    return latest


def schedule(
    worker_id: str,
    employer_id: str,
    when: Any,
    mode: str,
    location: Optional[str] = None,
    meeting_link: Optional[str] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
    as_admin: bool = False
) -> Dict[str, Any]:
    """
    Schedule (or reschedule) a worker's interview.

    A reschedule keeps the interview's employer; only that employer or an
    admin may move it, and only while the worker is interview_scheduled.

    Raises:
        ValidationError: past date, unknown mode, or missing mode-dependent field
        Forbidden: rescheduling another employer's interview
        IllegalTransition: first interview for a worker not in interview_pending,
            or a reschedule for a worker no longer interview_scheduled
        ConflictError: concurrent scheduling for the same worker
    """
    scheduled, field, value = _validate_slot(when, mode, location, meeting_link, now)
    other_field = _MODE_FIELDS[InterviewMode.OFFLINE if mode == InterviewMode.ONLINE else InterviewMode.ONLINE]
    timestamp = utc_now_iso()
    profile = worker_status.get_profile(worker_id)
    existing = active_interview(worker_id)

    if existing:
        _check_owner(existing, employer_id, as_admin)
        current = profile.get('workerStatus')
        if current != WorkerStatus.INTERVIEW_SCHEDULED:
            raise IllegalTransition(
                f"Interview cannot be rescheduled while worker status is '{current}'",
                status=current
            )

        set_clause = 'SET scheduledDate = :when, #mode = :mode, #field = :value, updatedAt = :ts'
        values = {
            ':when': scheduled.isoformat(),
            ':mode': mode,
            ':value': value,
            ':ts': timestamp,
            ':scheduled': InterviewStatus.SCHEDULED,
            ':one': 1,
        }
        if notes is not None:
            set_clause += ', notes = :notes'
            values[':notes'] = notes

        dynamo.transact_write([
            dynamo.update_op(
                config.WORKER_INTERVIEWS_TABLE,
                {'interviewId': existing['interviewId']},
                f'{set_clause} ADD rescheduleCount :one REMOVE #other',
                values,
                names={'#mode': 'mode', '#field': field, '#other': other_field, '#status': 'status'},
                condition='#status = :scheduled'
            )
        ] + worker_status.hold_items(profile))

        record = {k: v for k, v in existing.items() if k != other_field}
        record.update({
            'scheduledDate': scheduled.isoformat(),
            'mode': mode,
            field: value,
            'status': InterviewStatus.SCHEDULED,
            'rescheduleCount': int(existing.get('rescheduleCount', 0)) + 1,
            'updatedAt': timestamp,
        })
        if notes is not None:
            record['notes'] = notes

        logger.info(f"Rescheduled interview {existing['interviewId']} for worker {worker_id} to {scheduled.isoformat()}")
        return {'interview': record, 'rescheduled': True}

    record = {
        'interviewId': str(uuid.uuid4()),
        'workerId': worker_id,
        'employerId': employer_id,
        'scheduledDate': scheduled.isoformat(),
        'mode': mode,
        field: value,
        'status': InterviewStatus.SCHEDULED,
        'rescheduleCount': 0,
        'createdAt': timestamp,
        'updatedAt': timestamp,
    }
    if notes:
        record['notes'] = notes

    new_status = worker_status.advance(
        worker_id,
        Trigger.INTERVIEW_SCHEDULED,
        actor_id=employer_id,
        extra_items=[
            dynamo.put_op(
                config.WORKER_INTERVIEWS_TABLE,
                record,
                condition='attribute_not_exists(interviewId)'
            )
        ],
        profile=profile
    )

    logger.info(f"Scheduled interview {record['interviewId']} for worker {worker_id} at {record['scheduledDate']}")
    return {'interview': record, 'rescheduled': False, 'workerStatus': new_status}


def _check_owner(interview: Dict[str, Any], actor_id: str, as_admin: bool):
    if not as_admin and interview.get('employerId') != actor_id:
        raise Forbidden("Only the scheduling employer can update this interview")


def _require_scheduled(interview: Dict[str, Any]):
    if interview.get('status') != InterviewStatus.SCHEDULED:
        raise IllegalTransition(
            f"Interview is {interview.get('status')}, not scheduled",
            status=interview.get('status')
        )


def record_result(
    interview_id: str,
    result: str,
    actor_id: str,
    feedback: Optional[str] = None,
    as_admin: bool = False
) -> Dict[str, Any]:
    """
    Complete a scheduled interview with a result and move the worker to
    active_employee (selected) or rejected (rejected), atomically.
    """
    if result not in InterviewResult.DECISIONS:
        raise ValidationError(
            f"Result must be one of {', '.join(InterviewResult.DECISIONS)}",
            result=result
        )

    interview = get_interview(interview_id)
    _check_owner(interview, actor_id, as_admin)
    _require_scheduled(interview)

    timestamp = utc_now_iso()
    set_clause = 'SET #status = :completed, #result = :result, completedAt = :ts, updatedAt = :ts'
    values = {
        ':completed': InterviewStatus.COMPLETED,
        ':result': result,
        ':ts': timestamp,
        ':scheduled': InterviewStatus.SCHEDULED,
    }
    if feedback:
        set_clause += ', feedback = :feedback'
        values[':feedback'] = feedback

    op = dynamo.update_op(
        config.WORKER_INTERVIEWS_TABLE,
        {'interviewId': interview_id},
        set_clause,
        values,
        names={'#status': 'status', '#result': 'result'},
        condition='#status = :scheduled'
    )

    new_status = worker_status.advance(
        interview['workerId'],
        _RESULT_TRIGGERS[result],
        actor_id=actor_id,
        notes=feedback,
        extra_items=[op]
    )

    record = {
        **interview,
        'status': InterviewStatus.COMPLETED,
        'result': result,
        'completedAt': timestamp,
        'updatedAt': timestamp,
    }
    if feedback:
        record['feedback'] = feedback

    logger.info(f"Interview {interview_id} completed: {result}, worker now {new_status}")
    return {'interview': record, 'workerStatus': new_status}


def _cancel_op(interview_id: str, reason: Optional[str], timestamp: str) -> Dict[str, Any]:
    set_clause = 'SET #status = :cancelled, cancelledAt = :ts, updatedAt = :ts'
    values = {
        ':cancelled': InterviewStatus.CANCELLED,
        ':ts': timestamp,
        ':scheduled': InterviewStatus.SCHEDULED,
    }
    if reason:
        set_clause += ', cancelReason = :reason'
        values[':reason'] = reason

    return dynamo.update_op(
        config.WORKER_INTERVIEWS_TABLE,
        {'interviewId': interview_id},
        set_clause,
        values,
        names={'#status': 'status'},
        condition='#status = :scheduled'
    )


def _cancelled(interview: Dict[str, Any], reason: Optional[str], timestamp: str) -> Dict[str, Any]:
    record = {**interview, 'status': InterviewStatus.CANCELLED, 'cancelledAt': timestamp, 'updatedAt': timestamp}
    if reason:
        record['cancelReason'] = reason
    return record


def cancel(
    interview_id: str,
    actor_id: str,
    reason: Optional[str] = None,
    as_admin: bool = False
) -> Dict[str, Any]:
    """Cancel a scheduled interview; the worker returns to interview_pending."""
    interview = get_interview(interview_id)
    _check_owner(interview, actor_id, as_admin)
    _require_scheduled(interview)

    timestamp = utc_now_iso()
    new_status = worker_status.advance(
        interview['workerId'],
        Trigger.INTERVIEW_CANCELLED,
        actor_id=actor_id,
        notes=reason,
        extra_items=[_cancel_op(interview_id, reason, timestamp)]
    )
    return {'interview': _cancelled(interview, reason, timestamp), 'workerStatus': new_status}


def reject_application(user_id: str, actor_id: str, reason: Optional[str] = None) -> Dict[str, Any]:
    """
    Reject a user who has not become active yet.

    A worker's scheduled interview is cancelled in the same transaction, so a
    rejected worker is never left holding a live interview.
    """
    profile = worker_status.get_profile(user_id)
    timestamp = utc_now_iso()
    extra_items = []
    interview = active_interview(user_id) if profile.get('role') == Role.WORKER else None
    if interview:
        extra_items.append(_cancel_op(interview['interviewId'], reason or 'Application rejected', timestamp))

    new_status = worker_status.advance(
        user_id,
        Trigger.APPLICATION_REJECTED,
        actor_id=actor_id,
        notes=reason,
        extra_items=extra_items,
        profile=profile
    )

    if interview:
        logger.info(f"Cancelled interview {interview['interviewId']} of rejected user {user_id}")
        interview = _cancelled(interview, reason or 'Application rejected', timestamp)
    return {'workerStatus': new_status, 'cancelledInterview': interview}


def time_remaining(interview: Optional[Dict[str, Any]], now: Optional[datetime] = None) -> Optional[Dict[str, int]]:
    """
    Days/hours/minutes until a scheduled interview.
    None when there is no scheduled interview or it is overdue (never auto-expired).
    """
    if not interview or interview.get('status') != InterviewStatus.SCHEDULED:
        return None

    diff = parse_timestamp(interview['scheduledDate'], 'scheduledDate') - (now or utc_now())
    total = int(diff.total_seconds())
    if total <= 0:
        return None

    return {
        'days': total // 86400,
        'hours': (total % 86400) // 3600,
        'minutes': (total % 3600) // 60,
        'totalSeconds': total,
    }
