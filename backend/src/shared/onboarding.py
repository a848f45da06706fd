"""
Read-only onboarding projections for worker dashboards and the employer's
worker list. Nothing here writes; every figure is derived from stored records.
"""
from typing import Any, Dict, List, Optional

from . import documents, interviews, profiles, worker_status
from .exceptions import ValidationError
from .models import Role, WorkerStatus


def onboarding_progress(worker_id: str) -> Dict[str, Any]:
    """Status, document counts and interview countdown for one worker."""
    profile = worker_status.get_profile(worker_id)
    status = profile.get('workerStatus')
    required = documents.required_types(profile.get('role'))
    docs = documents.get_documents(worker_id)
    latest = interviews.latest_interview(worker_id)

    return {
        'workerId': worker_id,
        'role': profile.get('role'),
        'workerStatus': status,
        'statusInfo': worker_status.status_info(status),
        'documents': docs,
        'requiredDocuments': list(required),
        'documentStats': documents.document_stats(docs, required),
        'documentsFullyApproved': documents.documents_fully_approved(docs, required),
        'interview': latest,
        'timeRemaining': interviews.time_remaining(latest),
    }


def worker_overviews(status: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    All workers with their document stats and latest interview.
    Documents and interviews are loaded with one set-based read each.
    """
    if status is not None and status not in WorkerStatus.ALL:
        raise ValidationError(f"Unknown worker status {status!r}", status=status)

    workers = profiles.list_profiles(Role.WORKER)
    if status is not None:
        workers = [w for w in workers if w.get('workerStatus') == status]
    if not workers:
        return []

    worker_ids = [w['userId'] for w in workers]
    docs_by_worker = documents.documents_for_workers(worker_ids)
    interview_by_worker = interviews.interviews_for_workers(worker_ids)

    overviews = []
    for worker in workers:
        worker_id = worker['userId']
        docs = docs_by_worker.get(worker_id, [])
        overviews.append({
            'workerId': worker_id,
            'fullName': worker.get('fullName'),
            'email': worker.get('email'),
            'workerStatus': worker.get('workerStatus'),
            'rating': worker.get('rating'),
            'designation': worker.get('designation'),
            'documentStats': documents.document_stats(docs),
            'documentsFullyApproved': documents.documents_fully_approved(docs),
            'interview': interview_by_worker.get(worker_id),
            'createdAt': worker.get('createdAt'),
        })

    overviews.sort(key=lambda o: o.get('createdAt') or '', reverse=True)
    return overviews
