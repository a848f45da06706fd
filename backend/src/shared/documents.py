"""
Document Verification Tracker.

Keeps one worker_documents record per (userId, documentType) and derives
"fully verified" from the stored records only. Workers upload credential
documents; employers upload company verification documents into the same
table under their own id.

Every upload and decision commits together with a write to the owner's
profile: either the status transition it causes, or a statusVersion bump.
Two reviewers approving the last two pending documents at the same time
therefore cannot both commit on a view where the other is still pending.
"""
from typing import Any, Dict, Iterable, List, Optional, Tuple

from . import dynamo, worker_status
from .config import config
from .exceptions import ConflictError, Forbidden, IllegalTransition, NotFound, ValidationError
from .logging import logger
from .models import DocumentType, Role, VerificationStatus, WorkerStatus
from .utils import is_blank, utc_now_iso
from .worker_status import Trigger

REQUIRED_DOCUMENT_TYPES = DocumentType.REQUIRED

# Statuses in which a user may still upload documents
_UPLOAD_STATUSES = {
    Role.WORKER: (WorkerStatus.DOCUMENT_UPLOAD_PENDING, WorkerStatus.VERIFICATION_PENDING),
    Role.EMPLOYER: (WorkerStatus.VERIFICATION_PENDING,),
}

_WRITE_ATTEMPTS = 3


def required_types(role: Optional[str]) -> Tuple[str, ...]:
    """Document types a user of this role has to provide."""
    if role == Role.EMPLOYER:
        return DocumentType.EMPLOYER_REQUIRED
    return REQUIRED_DOCUMENT_TYPES


def documents_fully_approved(
    documents: Iterable[Dict[str, Any]],
    required: Tuple[str, ...] = REQUIRED_DOCUMENT_TYPES
) -> bool:
    """True iff every required type has an approved record."""
    approved = {
        doc.get('documentType') for doc in documents
        if doc.get('verificationStatus') == VerificationStatus.APPROVED
    }
    return all(doc_type in approved for doc_type in required)


def document_stats(
    documents: Iterable[Dict[str, Any]],
    required: Tuple[str, ...] = REQUIRED_DOCUMENT_TYPES
) -> Dict[str, int]:
    """Upload/approval counts over the required document types."""
    documents = list(documents)
    present = {doc.get('documentType'): doc for doc in documents}
    return {
        'total': len(required),
        'uploaded': sum(1 for t in required if t in present),
        'approved': sum(
            1 for t in required
            if present.get(t, {}).get('verificationStatus') == VerificationStatus.APPROVED
        ),
        'rejected': sum(
            1 for doc in documents
            if doc.get('verificationStatus') == VerificationStatus.REJECTED
        ),
    }


def get_documents(worker_id: str) -> List[Dict[str, Any]]:
    """All document records for one user."""
    return dynamo.query_index(config.WORKER_DOCUMENTS_TABLE, 'workerId', worker_id)


def documents_for_workers(worker_ids: Iterable[str]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Batch-load documents for many workers, grouped by worker id.
    Keys are fully known (worker x required type), so this is a BatchGetItem.
    """
    worker_ids = list(dict.fromkeys(worker_ids))
    grouped = {worker_id: [] for worker_id in worker_ids}
    keys = [
        {'workerId': worker_id, 'documentType': doc_type}
        for worker_id in worker_ids
        for doc_type in REQUIRED_DOCUMENT_TYPES
    ]
    for doc in dynamo.batch_get_items(config.WORKER_DOCUMENTS_TABLE, keys):
        grouped.setdefault(doc['workerId'], []).append(doc)
    return grouped


def is_fully_approved(worker_id: str) -> bool:
    """Computed from canonical stored documents, never from client state."""
    return documents_fully_approved(get_documents(worker_id))


def _validate_type(document_type: str, required: Tuple[str, ...]):
    if document_type not in required:
        raise ValidationError(
            f"Unknown document type {document_type!r}",
            allowed=list(required)
        )


def _validate_employer_file(file_name: str):
    extension = file_name.rsplit('.', 1)[-1].lower() if '.' in file_name else ''
    if extension not in DocumentType.EMPLOYER_EXTENSIONS:
        raise ValidationError(
            "Verification documents must be PDF, JPEG or PNG files",
            fileName=file_name
        )


def _retrying(write, description: str):
    """Re-run a read-decide-write step when a concurrent writer won the race."""
    for attempt in range(1, _WRITE_ATTEMPTS + 1):
        try:
            return write()
        except ConflictError:
            if attempt == _WRITE_ATTEMPTS:
                raise
            logger.warning(f"Concurrent update during {description}, retrying (attempt {attempt})")


def submit_document(
    user_id: str,
    document_type: str,
    file_path: str,
    file_name: str,
    file_size: int = 0,
    mime_type: str = 'application/octet-stream'
) -> Dict[str, Any]:
    """
    Record an uploaded document file.

    A new type creates a pending record. A rejected record may be resubmitted,
    which resets it to pending and clears the previous verdict. Pending and
    approved records cannot be replaced by the owner.

    When the upload completes a worker's required set while the worker is
    still in document_upload_pending, the worker moves to
    verification_pending in the same transaction.
    """
    if is_blank(file_path) or is_blank(file_name):
        raise ValidationError("filePath and fileName are required")

    profile = worker_status.get_profile(user_id)
    role = profile.get('role')
    if role not in _UPLOAD_STATUSES:
        raise ValidationError("Only workers and employers upload verification documents")
    _validate_type(document_type, required_types(role))
    if role == Role.EMPLOYER:
        _validate_employer_file(file_name)

    return _retrying(
        lambda: _write_document(user_id, document_type, file_path, file_name, file_size, mime_type),
        f"upload of {document_type} for {user_id}"
    )


def _write_document(user_id, document_type, file_path, file_name, file_size, mime_type):
    profile = worker_status.get_profile(user_id)
    role = profile.get('role')
    current = profile.get('workerStatus')
    if current not in _UPLOAD_STATUSES[role]:
        raise IllegalTransition(
            f"Documents cannot be uploaded while status is '{current}'",
            status=current
        )

    documents = get_documents(user_id)
    by_type = {doc['documentType']: doc for doc in documents}
    existing = by_type.get(document_type)
    timestamp = utc_now_iso()
    key = {'workerId': user_id, 'documentType': document_type}

    if existing:
        existing_status = existing.get('verificationStatus')
        if existing_status == VerificationStatus.APPROVED:
            raise ValidationError(f"{document_type} is already approved and cannot be replaced")
        if existing_status == VerificationStatus.PENDING:
            raise ValidationError(f"{document_type} is awaiting review")

        op = dynamo.update_op(
            config.WORKER_DOCUMENTS_TABLE,
            key,
            'SET filePath = :path, fileName = :name, fileSize = :size, mimeType = :mime, '
            'verificationStatus = :pending, updatedAt = :ts '
            'ADD submissionCount :one '
            'REMOVE verificationNotes, verifiedBy, verifiedAt',
            {
                ':path': file_path,
                ':name': file_name,
                ':size': int(file_size or 0),
                ':mime': mime_type,
                ':pending': VerificationStatus.PENDING,
                ':rejected': VerificationStatus.REJECTED,
                ':ts': timestamp,
                ':one': 1,
            },
            condition='verificationStatus = :rejected'
        )
        record = {
            k: v for k, v in existing.items()
            if k not in ('verificationNotes', 'verifiedBy', 'verifiedAt')
        }
        record.update({
            'filePath': file_path,
            'fileName': file_name,
            'fileSize': int(file_size or 0),
            'mimeType': mime_type,
            'verificationStatus': VerificationStatus.PENDING,
            'submissionCount': int(existing.get('submissionCount', 1)) + 1,
            'updatedAt': timestamp,
        })
    else:
        record = {
            **key,
            'filePath': file_path,
            'fileName': file_name,
            'fileSize': int(file_size or 0),
            'mimeType': mime_type,
            'verificationStatus': VerificationStatus.PENDING,
            'submissionCount': 1,
            'createdAt': timestamp,
            'updatedAt': timestamp,
        }
        op = dynamo.put_op(
            config.WORKER_DOCUMENTS_TABLE,
            record,
            condition='attribute_not_exists(workerId)'
        )

    uploaded_types = set(by_type) | {document_type}
    all_uploaded = all(t in uploaded_types for t in required_types(role))

    if role == Role.WORKER and current == WorkerStatus.DOCUMENT_UPLOAD_PENDING and all_uploaded:
        new_status = worker_status.advance(
            user_id,
            Trigger.DOCUMENTS_SUBMITTED,
            actor_id=user_id,
            notes='All required documents uploaded',
            extra_items=[op],
            profile=profile
        )
    else:
        dynamo.transact_write([op] + worker_status.hold_items(profile))
        new_status = current

    logger.info(f"User {user_id} submitted {document_type} (resubmission={bool(existing)})")
    return {
        'document': record,
        'resubmitted': bool(existing),
        'workerStatus': new_status,
    }


def record_decision(
    worker_id: str,
    document_type: str,
    decision: str,
    verifier_id: str,
    notes: Optional[str] = None,
    as_admin: bool = False
) -> Dict[str, Any]:
    """
    Approve or reject a pending document.

    If this approval completes a worker's required set and the worker is
    verification_pending, the all_documents_approved transition commits in
    the same transaction as the document write. Employer documents are
    reviewed by admins only and never change the employer's status; the
    employer is approved separately.

    Raises:
        ValidationError: unknown decision or document type
        Forbidden: a non-admin reviewing employer documents
        NotFound: no such document
        IllegalTransition: document is not pending
        ConflictError: lost the race to concurrent reviews on every attempt
    """
    if decision not in VerificationStatus.DECISIONS:
        raise ValidationError(
            f"Decision must be one of {', '.join(VerificationStatus.DECISIONS)}",
            decision=decision
        )

    profile = worker_status.get_profile(worker_id)
    role = profile.get('role')
    _validate_type(document_type, required_types(role))
    if role == Role.EMPLOYER and not as_admin:
        raise Forbidden("Only admins can review employer documents")

    return _retrying(
        lambda: _write_decision(worker_id, document_type, decision, verifier_id, notes),
        f"review of {document_type} for {worker_id}"
    )


def _write_decision(worker_id, document_type, decision, verifier_id, notes):
    key = {'workerId': worker_id, 'documentType': document_type}
    document = dynamo.get_item(config.WORKER_DOCUMENTS_TABLE, key)
    if not document:
        raise NotFound(f"No {document_type} uploaded for {worker_id}")

    if document.get('verificationStatus') != VerificationStatus.PENDING:
        raise IllegalTransition(
            f"{document_type} is already {document.get('verificationStatus')}",
            status=document.get('verificationStatus')
        )

    # Profile read before the siblings: its statusVersion pins the view below
    profile = worker_status.get_profile(worker_id)
    role = profile.get('role')
    current = profile.get('workerStatus')
    required = required_types(role)

    timestamp = utc_now_iso()
    set_clause = 'SET verificationStatus = :decision, verifiedBy = :verifier, verifiedAt = :ts, updatedAt = :ts'
    values = {
        ':decision': decision,
        ':verifier': verifier_id,
        ':ts': timestamp,
        ':pending': VerificationStatus.PENDING,
    }
    if notes:
        set_clause += ', verificationNotes = :notes'
        values[':notes'] = notes

    op = dynamo.update_op(
        config.WORKER_DOCUMENTS_TABLE,
        key,
        set_clause,
        values,
        condition='verificationStatus = :pending'
    )

    decided = {**document, 'verificationStatus': decision, 'verifiedBy': verifier_id, 'verifiedAt': timestamp}
    if notes:
        decided['verificationNotes'] = notes

    # Prospective view: canonical records with this decision applied
    documents = [doc for doc in get_documents(worker_id) if doc.get('documentType') != document_type]
    documents.append(decided)
    fully_approved = documents_fully_approved(documents, required)

    if role == Role.WORKER and fully_approved and current == WorkerStatus.VERIFICATION_PENDING:
        new_status = worker_status.advance(
            worker_id,
            Trigger.ALL_DOCUMENTS_APPROVED,
            actor_id=verifier_id,
            notes='All required documents approved',
            extra_items=[op],
            profile=profile
        )
    else:
        dynamo.transact_write([op] + worker_status.hold_items(profile))
        new_status = current

    logger.info(f"Document {document_type} of {worker_id} {decision} by {verifier_id}")
    return {
        'document': decided,
        'fullyApproved': fully_approved,
        'workerStatus': new_status,
        'documentStats': document_stats(documents, required),
    }
