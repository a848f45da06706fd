"""
Task Submission Reviewer.

Submissions move pending → approved | rejected exactly once. Approving a
submission consumes one task slot in the same transaction, so the count of
approved submissions can never pass the task's slots.
"""
import uuid
from typing import Any, Dict, List, Optional

from . import dynamo, tasks, worker_status
from .config import config
from .exceptions import (
    AlreadyRated,
    AlreadyReviewed,
    ConflictError,
    Forbidden,
    IllegalTransition,
    NotFound,
    ValidationError,
)
from .logging import logger
from .models import Role, SubmissionStatus, TaskStatus
from .ratings import (
    DEFAULT_WORKER_RATING,
    DESIGNATION_LABELS,
    average_rating,
    calculate_designation,
    validate_rating,
)
from .s3_utils import is_owned_key
from .utils import is_blank, utc_now_iso

ALLOWED_EXTENSIONS = {
    'jpg', 'jpeg', 'png', 'gif', 'webp', 'svg',
    'pdf', 'doc', 'docx', 'txt', 'md',
    'mp4', 'avi', 'mov', 'wmv',
    'mp3', 'wav', 'ogg',
}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB


def get_submission(submission_id: str) -> Dict[str, Any]:
    submission = dynamo.get_item(config.TASK_SUBMISSIONS_TABLE, {'submissionId': submission_id})
    if not submission:
        raise NotFound(f"Submission {submission_id} not found", submissionId=submission_id)
    return submission


def _validate_files(worker_id: str, proof_files: Any) -> List[Dict[str, Any]]:
    if proof_files is None:
        return []
    if not isinstance(proof_files, list):
        raise ValidationError("proofFiles must be a list")
    if len(proof_files) > config.MAX_SUBMISSION_FILES:
        raise ValidationError(
            f"At most {config.MAX_SUBMISSION_FILES} files can be attached",
            fileCount=len(proof_files)
        )

    files = []
    for entry in proof_files:
        if not isinstance(entry, dict) or is_blank(entry.get('filePath')) or is_blank(entry.get('fileName')):
            raise ValidationError("Each proof file needs a fileName and filePath")

        file_name = entry['fileName'].strip()
        extension = file_name.rsplit('.', 1)[-1].lower() if '.' in file_name else ''
        if extension not in ALLOWED_EXTENSIONS:
            raise ValidationError(f"File type not allowed: {file_name}", fileName=file_name)
        if not is_owned_key(entry['filePath'], worker_id):
            raise ValidationError(f"File {file_name} was not uploaded by this worker", fileName=file_name)

        size = int(entry.get('fileSize') or 0)
        if size > MAX_FILE_SIZE:
            raise ValidationError(f"File {file_name} exceeds the 10MB limit", fileName=file_name)

        files.append({'fileName': file_name, 'filePath': entry['filePath'], 'fileSize': size})
    return files


def validate_proof(worker_id: str, proof_text: Optional[str], proof_files: Any) -> Dict[str, Any]:
    """
    Validate submission proof: text, files, or both.

    Raises:
        ValidationError: no proof, text too short, too many files or a bad file
    """
    text = (proof_text or '').strip()
    files = _validate_files(worker_id, proof_files)

    if not text and not files:
        raise ValidationError("Provide proof text or at least one file")
    if text and len(text) < config.MIN_PROOF_TEXT_LENGTH:
        raise ValidationError(
            f"Proof text must be at least {config.MIN_PROOF_TEXT_LENGTH} characters",
            field='proofText'
        )
    return {'proofText': text, 'proofFiles': files}


def submit_work(
    task_id: str,
    worker_id: str,
    proof_text: Optional[str] = None,
    proof_files: Any = None
) -> Dict[str, Any]:
    """Record a worker's proof of work for a task as a pending submission."""
    profile = worker_status.get_profile(worker_id)
    if profile.get('role') != Role.WORKER:
        raise Forbidden("Only workers can submit work")
    status = profile.get('workerStatus')
    if not worker_status.can_submit_tasks(status):
        raise IllegalTransition("Only active employees can submit work", status=status)

    task = tasks.get_task(task_id)
    if task.get('status') != TaskStatus.ACTIVE:
        raise IllegalTransition(f"Task is {task.get('status')}", taskStatus=task.get('status'))
    if tasks.slots_remaining(task) <= 0:
        raise IllegalTransition("Task has no free slots", taskId=task_id)

    proof = validate_proof(worker_id, proof_text, proof_files)
    timestamp = utc_now_iso()
    item = {
        'submissionId': str(uuid.uuid4()),
        'taskId': task_id,
        'workerId': worker_id,
        'employerId': task['employerId'],
        'proofText': proof['proofText'],
        'proofFiles': proof['proofFiles'],
        'status': SubmissionStatus.PENDING,
        'submittedAt': timestamp,
        'createdAt': timestamp,
        'updatedAt': timestamp,
    }

    dynamo.put_item(
        config.TASK_SUBMISSIONS_TABLE,
        item,
        condition_expression='attribute_not_exists(submissionId)'
    )
    logger.info(f"Worker {worker_id} submitted {item['submissionId']} for task {task_id}")
    return item


def _slot_op(task: Dict[str, Any], timestamp: str) -> Dict[str, Any]:
    """Consume one slot; completes the task when the last slot is taken."""
    observed = int(task.get('completedSlots', 0))
    slots = int(task.get('slots', 0))
    if observed >= slots:
        raise IllegalTransition("Task has no free slots", taskId=task['taskId'])

    values = {':one': 1, ':observed': observed, ':ts': timestamp}
    update = 'SET completedSlots = completedSlots + :one, updatedAt = :ts'
    names = None
    if observed + 1 >= slots:
        update += ', #status = :completed'
        values[':completed'] = TaskStatus.COMPLETED
        names = {'#status': 'status'}

    return dynamo.update_op(
        config.TASKS_TABLE,
        {'taskId': task['taskId']},
        update,
        values,
        names=names,
        condition='completedSlots = :observed AND completedSlots < slots'
    )


def decide(
    submission_id: str,
    decision: str,
    reviewer_id: str,
    notes: Optional[str] = None,
    as_admin: bool = False
) -> Dict[str, Any]:
    """
    Approve or reject a pending submission.

    Returns:
        {'submission', 'changed', 'taskCompleted'}

    Raises:
        ValidationError: decision not approved/rejected
        Forbidden: reviewer does not own the task
        AlreadyReviewed: the submission already holds the opposite decision
        ConflictError: a concurrent review or slot change won the race
    """
    if decision not in SubmissionStatus.DECISIONS:
        raise ValidationError(
            f"Decision must be one of {', '.join(SubmissionStatus.DECISIONS)}",
            decision=decision
        )

    submission = get_submission(submission_id)
    task = tasks.get_task(submission['taskId'])
    if not as_admin and task.get('employerId') != reviewer_id:
        raise Forbidden("Only the task owner can review this submission")

    current = submission.get('status')
    if current == decision:
        logger.info(f"Submission {submission_id} already {decision}")
        return {'submission': submission, 'changed': False, 'taskCompleted': False}
    if current != SubmissionStatus.PENDING:
        raise AlreadyReviewed(
            f"Submission was already {current}",
            submissionId=submission_id,
            status=current
        )

    timestamp = utc_now_iso()
    set_clause = 'SET #status = :decision, reviewedBy = :reviewer, reviewedAt = :ts, updatedAt = :ts'
    values = {
        ':decision': decision,
        ':reviewer': reviewer_id,
        ':ts': timestamp,
        ':pending': SubmissionStatus.PENDING,
    }
    if notes:
        set_clause += ', reviewerNotes = :notes'
        values[':notes'] = notes

    items = [
        dynamo.update_op(
            config.TASK_SUBMISSIONS_TABLE,
            {'submissionId': submission_id},
            set_clause,
            values,
            names={'#status': 'status'},
            condition='#status = :pending'
        )
    ]

    task_completed = False
    if decision == SubmissionStatus.APPROVED:
        items.append(_slot_op(task, timestamp))
        task_completed = int(task.get('completedSlots', 0)) + 1 >= int(task.get('slots', 0))

    dynamo.transact_write(items)

    record = {
        **submission,
        'status': decision,
        'reviewedBy': reviewer_id,
        'reviewedAt': timestamp,
        'updatedAt': timestamp,
    }
    if notes:
        record['reviewerNotes'] = notes

    logger.info(f"Submission {submission_id} {decision} by {reviewer_id}")
    return {'submission': record, 'changed': True, 'taskCompleted': task_completed}


def rate_worker(
    submission_id: str,
    rating: Any,
    employer_id: str,
    feedback: Optional[str] = None
) -> Dict[str, Any]:
    """
    Rate the worker behind an approved submission, once.

    The submission flag and the worker's rating totals are written together;
    the average and designation are then recomputed from the stored totals.
    """
    rating = validate_rating(rating)
    submission = get_submission(submission_id)

    if submission.get('employerId') != employer_id:
        raise Forbidden("Only the task owner can rate this submission")
    if submission.get('status') != SubmissionStatus.APPROVED:
        raise IllegalTransition("Only approved submissions can be rated", status=submission.get('status'))
    if submission.get('employerRatingGiven') is not None:
        raise AlreadyRated("Submission has already been rated", submissionId=submission_id)

    worker_id = submission['workerId']
    timestamp = utc_now_iso()
    set_clause = 'SET employerRatingGiven = :rating, ratedAt = :ts, updatedAt = :ts'
    values = {':rating': rating, ':ts': timestamp}
    if feedback:
        set_clause += ', ratingFeedback = :feedback'
        values[':feedback'] = feedback

    try:
        dynamo.transact_write([
            dynamo.update_op(
                config.TASK_SUBMISSIONS_TABLE,
                {'submissionId': submission_id},
                set_clause,
                values,
                condition='attribute_not_exists(employerRatingGiven)'
            ),
            dynamo.update_op(
                config.PROFILES_TABLE,
                {'userId': worker_id},
                'ADD ratingSum :rating, ratingCount :one SET updatedAt = :ts',
                {':rating': rating, ':one': 1, ':ts': timestamp},
                condition='attribute_exists(userId)'
            ),
        ])
    except ConflictError:
        # Either a concurrent rating won, or the worker profile is gone
        if get_submission(submission_id).get('employerRatingGiven') is not None:
            raise AlreadyRated("Submission has already been rated", submissionId=submission_id)
        worker_status.get_profile(worker_id)
        raise

    profile = worker_status.get_profile(worker_id)
    count = int(profile.get('ratingCount', 0))
    average = average_rating(profile.get('ratingSum', 0), count, DEFAULT_WORKER_RATING)
    designation = calculate_designation(average)

    try:
        dynamo.update_item(
            config.PROFILES_TABLE,
            {'userId': worker_id},
            'SET rating = :avg, designation = :designation',
            {':avg': average, ':designation': designation, ':count': count},
            condition_expression='ratingCount = :count'
        )
    except ConflictError:
        # a later rating landed first and will store the newer average
        logger.info(f"Rating average for {worker_id} superseded by a concurrent rating")

    logger.info(f"Worker {worker_id} rated {rating} on {submission_id}: avg {average} ({designation})")
    return {
        'submissionId': submission_id,
        'workerId': worker_id,
        'rating': rating,
        'averageRating': average,
        'ratingCount': count,
        'designation': designation,
        'designationLabel': DESIGNATION_LABELS[designation],
    }
