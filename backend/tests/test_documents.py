"""
Tests for document upload bookkeeping and verification decisions.
"""
import pytest

from conftest import make_employer, make_worker
from shared import documents, dynamo
from shared.exceptions import ConflictError, Forbidden, IllegalTransition, NotFound, ValidationError
from shared.models import DocumentType, VerificationStatus, WorkerStatus


def _doc(doc_type, status=VerificationStatus.PENDING, worker_id='worker-1'):
    return {
        'workerId': worker_id,
        'documentType': doc_type,
        'verificationStatus': status,
        'filePath': f'{worker_id}/{doc_type}.pdf',
        'fileName': f'{doc_type}.pdf',
        'submissionCount': 1,
    }


class TestFullyApproved:

    def test_all_required_approved(self):
        docs = [_doc(t, VerificationStatus.APPROVED) for t in DocumentType.REQUIRED]
        assert documents.documents_fully_approved(docs)

    def test_one_pending(self):
        docs = [_doc(t, VerificationStatus.APPROVED) for t in DocumentType.REQUIRED[:-1]]
        docs.append(_doc(DocumentType.REQUIRED[-1]))
        assert not documents.documents_fully_approved(docs)

    def test_missing_type(self):
        docs = [_doc(t, VerificationStatus.APPROVED) for t in DocumentType.REQUIRED[:4]]
        assert not documents.documents_fully_approved(docs)

    def test_stats(self):
        docs = [
            _doc(DocumentType.RESUME, VerificationStatus.APPROVED),
            _doc(DocumentType.KYC_DOCUMENT, VerificationStatus.REJECTED),
            _doc(DocumentType.TENTH_CERTIFICATE),
        ]
        assert documents.document_stats(docs) == {'total': 5, 'uploaded': 3, 'approved': 1, 'rejected': 1}


class TestRecordDecision:

    def test_last_approval_promotes_in_same_transaction(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))
        for doc_type in DocumentType.REQUIRED[:-1]:
            store.add('worker_documents', _doc(doc_type, VerificationStatus.APPROVED))
        store.add('worker_documents', _doc(DocumentType.KYC_DOCUMENT))

        result = documents.record_decision('worker-1', DocumentType.KYC_DOCUMENT, 'approved', 'admin-1')

        assert result['fullyApproved'] is True
        assert result['workerStatus'] == WorkerStatus.INTERVIEW_PENDING
        assert len(store.transactions) == 1
        doc_op, = store.ops('worker_documents', 'Update')
        assert doc_op['ExpressionAttributeValues'][':decision'] == 'approved'
        assert doc_op['ExpressionAttributeValues'][':verifier'] == 'admin-1'
        assert doc_op['ConditionExpression'] == 'verificationStatus = :pending'
        profile_op, = store.ops('profiles', 'Update')
        assert profile_op['ExpressionAttributeValues'][':new'] == WorkerStatus.INTERVIEW_PENDING

    def test_partial_approval_leaves_status(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))
        for doc_type in DocumentType.REQUIRED:
            store.add('worker_documents', _doc(doc_type))

        result = documents.record_decision('worker-1', DocumentType.RESUME, 'approved', 'admin-1')

        assert result['fullyApproved'] is False
        assert result['workerStatus'] == WorkerStatus.VERIFICATION_PENDING
        assert result['documentStats']['approved'] == 1
        hold, = store.ops('profiles', 'Update')
        assert ':new' not in hold['ExpressionAttributeValues']

    def test_rejection_records_notes(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))
        store.add('worker_documents', _doc(DocumentType.RESUME))

        result = documents.record_decision('worker-1', DocumentType.RESUME, 'rejected', 'admin-1', notes='Blurry')

        assert result['document']['verificationNotes'] == 'Blurry'
        doc_op, = store.ops('worker_documents', 'Update')
        assert doc_op['ExpressionAttributeValues'][':notes'] == 'Blurry'

    def test_already_decided_document(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))
        store.add('worker_documents', _doc(DocumentType.RESUME, VerificationStatus.APPROVED))

        with pytest.raises(IllegalTransition):
            documents.record_decision('worker-1', DocumentType.RESUME, 'rejected', 'admin-1')
        assert store.transactions == []

    def test_invalid_decision(self, store):
        with pytest.raises(ValidationError):
            documents.record_decision('worker-1', DocumentType.RESUME, 'pending', 'admin-1')

    def test_missing_document(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))
        with pytest.raises(NotFound):
            documents.record_decision('worker-1', DocumentType.RESUME, 'approved', 'admin-1')

    def test_full_approval_after_worker_moved_on_does_not_transition(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.REJECTED))
        for doc_type in DocumentType.REQUIRED[:-1]:
            store.add('worker_documents', _doc(doc_type, VerificationStatus.APPROVED))
        store.add('worker_documents', _doc(DocumentType.KYC_DOCUMENT))

        result = documents.record_decision('worker-1', DocumentType.KYC_DOCUMENT, 'approved', 'admin-1')

        assert result['fullyApproved'] is True
        assert result['workerStatus'] == WorkerStatus.REJECTED
        hold, = store.ops('profiles', 'Update')
        assert hold['UpdateExpression'] == 'SET statusVersion = :next, updatedAt = :ts'

    def test_decision_pins_profile_version(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))
        store.add('worker_documents', _doc(DocumentType.RESUME))
        store.add('worker_documents', _doc(DocumentType.KYC_DOCUMENT))

        documents.record_decision('worker-1', DocumentType.RESUME, 'approved', 'admin-1')

        transaction = store.last_transaction
        tables = sorted(next(iter(entry.values()))['TableName'] for entry in transaction)
        assert tables == ['profiles', 'worker_documents']
        hold, = store.ops('profiles', 'Update')
        assert hold['ExpressionAttributeValues'][':version'] == 3
        assert hold['ExpressionAttributeValues'][':next'] == 4

    def test_concurrent_last_approvals_retry_on_fresh_view(self, store, monkeypatch):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))
        for doc_type in DocumentType.REQUIRED[:3]:
            store.add('worker_documents', _doc(doc_type, VerificationStatus.APPROVED))
        store.add('worker_documents', _doc(DocumentType.RESUME))
        store.add('worker_documents', _doc(DocumentType.KYC_DOCUMENT))

        commit = store.transact_write
        calls = []

        def other_reviewer_wins_first(items):
            calls.append(items)
            if len(calls) == 1:
                # The KYC approval committed between our reads and our write
                for item in store.tables['worker_documents']:
                    if item['documentType'] == DocumentType.KYC_DOCUMENT:
                        item['verificationStatus'] = VerificationStatus.APPROVED
                store.tables['profiles'][0]['statusVersion'] = 4
                raise ConflictError("Concurrent modification detected")
            commit(items)

        monkeypatch.setattr(dynamo, 'transact_write', other_reviewer_wins_first)

        result = documents.record_decision('worker-1', DocumentType.RESUME, 'approved', 'admin-1')

        assert len(calls) == 2
        assert result['fullyApproved'] is True
        assert result['workerStatus'] == WorkerStatus.INTERVIEW_PENDING
        profile_op, = store.ops('profiles', 'Update')
        assert profile_op['ExpressionAttributeValues'][':new'] == WorkerStatus.INTERVIEW_PENDING
        assert profile_op['ExpressionAttributeValues'][':version'] == 4

    def test_persistent_conflict_is_raised(self, store, monkeypatch):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))
        store.add('worker_documents', _doc(DocumentType.RESUME))
        attempts = []

        def always_conflict(items):
            attempts.append(items)
            raise ConflictError("Concurrent modification detected")

        monkeypatch.setattr(dynamo, 'transact_write', always_conflict)

        with pytest.raises(ConflictError):
            documents.record_decision('worker-1', DocumentType.RESUME, 'approved', 'admin-1')
        assert len(attempts) == 3


class TestSubmitDocument:

    def test_first_upload_creates_pending_record(self, store):
        store.add('profiles', make_worker())

        result = documents.submit_document('worker-1', DocumentType.RESUME, 'worker-1/cv.pdf', 'cv.pdf', 1024)

        assert result['resubmitted'] is False
        assert result['workerStatus'] == WorkerStatus.DOCUMENT_UPLOAD_PENDING
        put, = store.ops('worker_documents', 'Put')
        assert put['Item']['verificationStatus'] == VerificationStatus.PENDING
        assert put['ConditionExpression'] == 'attribute_not_exists(workerId)'

    def test_final_upload_moves_to_verification(self, store):
        store.add('profiles', make_worker())
        for doc_type in DocumentType.REQUIRED[:-1]:
            store.add('worker_documents', _doc(doc_type))

        result = documents.submit_document('worker-1', DocumentType.KYC_DOCUMENT, 'worker-1/id.pdf', 'id.pdf')

        assert result['workerStatus'] == WorkerStatus.VERIFICATION_PENDING
        assert len(store.transactions) == 1
        assert len(store.ops('worker_documents', 'Put')) == 1
        assert len(store.ops('profiles', 'Update')) == 1

    def test_rejected_document_can_be_resubmitted(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))
        rejected = _doc(DocumentType.RESUME, VerificationStatus.REJECTED)
        rejected['verificationNotes'] = 'Blurry'
        store.add('worker_documents', rejected)

        result = documents.submit_document('worker-1', DocumentType.RESUME, 'worker-1/cv2.pdf', 'cv2.pdf')

        assert result['resubmitted'] is True
        assert result['document']['verificationStatus'] == VerificationStatus.PENDING
        assert 'verificationNotes' not in result['document']
        assert result['document']['submissionCount'] == 2
        update, = store.ops('worker_documents', 'Update')
        assert update['ConditionExpression'] == 'verificationStatus = :rejected'
        assert 'REMOVE verificationNotes' in update['UpdateExpression']

    @pytest.mark.parametrize('status', [VerificationStatus.PENDING, VerificationStatus.APPROVED])
    def test_live_document_cannot_be_replaced(self, store, status):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))
        store.add('worker_documents', _doc(DocumentType.RESUME, status))

        with pytest.raises(ValidationError):
            documents.submit_document('worker-1', DocumentType.RESUME, 'worker-1/cv.pdf', 'cv.pdf')

    def test_upload_after_verification_is_illegal(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.INTERVIEW_PENDING))

        with pytest.raises(IllegalTransition):
            documents.submit_document('worker-1', DocumentType.RESUME, 'worker-1/cv.pdf', 'cv.pdf')

    def test_unknown_type(self, store):
        store.add('profiles', make_worker())
        with pytest.raises(ValidationError):
            documents.submit_document('worker-1', 'passport', 'worker-1/p.pdf', 'p.pdf')


class TestDocumentsForWorkers:

    def test_groups_by_worker(self, store):
        store.add('worker_documents', _doc(DocumentType.RESUME, worker_id='w1'))
        store.add('worker_documents', _doc(DocumentType.RESUME, worker_id='w2'))
        store.add('worker_documents', _doc(DocumentType.KYC_DOCUMENT, worker_id='w2'))

        grouped = documents.documents_for_workers(['w1', 'w2', 'w3'])

        assert len(grouped['w1']) == 1
        assert len(grouped['w2']) == 2
        assert grouped['w3'] == []


class TestIsFullyApproved:

    def test_reads_stored_records(self, store):
        for doc_type in DocumentType.REQUIRED:
            store.add('worker_documents', _doc(doc_type, VerificationStatus.APPROVED))

        assert documents.is_fully_approved('worker-1')
        assert not documents.is_fully_approved('worker-2')


class TestEmployerDocuments:

    def test_employer_uploads_company_document(self, store):
        store.add('profiles', make_employer(status=WorkerStatus.VERIFICATION_PENDING))

        result = documents.submit_document('employer-1', DocumentType.CIN, 'employer-1/cin.pdf', 'cin.pdf')

        assert result['workerStatus'] == WorkerStatus.VERIFICATION_PENDING
        put, = store.ops('worker_documents', 'Put')
        assert put['Item']['workerId'] == 'employer-1'
        assert put['Item']['documentType'] == DocumentType.CIN

    def test_employer_cannot_upload_worker_credentials(self, store):
        store.add('profiles', make_employer(status=WorkerStatus.VERIFICATION_PENDING))

        with pytest.raises(ValidationError):
            documents.submit_document('employer-1', DocumentType.RESUME, 'employer-1/cv.pdf', 'cv.pdf')

    def test_employer_file_must_be_pdf_or_image(self, store):
        store.add('profiles', make_employer(status=WorkerStatus.VERIFICATION_PENDING))

        with pytest.raises(ValidationError):
            documents.submit_document('employer-1', DocumentType.MOA, 'employer-1/moa.docx', 'moa.docx')

    def test_approved_employer_cannot_upload(self, store):
        store.add('profiles', make_employer())

        with pytest.raises(IllegalTransition):
            documents.submit_document('employer-1', DocumentType.CIN, 'employer-1/cin.pdf', 'cin.pdf')

    def test_only_admins_review_employer_documents(self, store):
        store.add('profiles', make_employer(status=WorkerStatus.VERIFICATION_PENDING))
        store.add('worker_documents', _doc(DocumentType.CIN, worker_id='employer-1'))

        with pytest.raises(Forbidden):
            documents.record_decision('employer-1', DocumentType.CIN, 'approved', 'employer-2')
        assert store.transactions == []

    def test_full_approval_does_not_activate_employer(self, store):
        store.add('profiles', make_employer(status=WorkerStatus.VERIFICATION_PENDING))
        for doc_type in DocumentType.EMPLOYER_REQUIRED[:-1]:
            store.add('worker_documents', _doc(doc_type, VerificationStatus.APPROVED, worker_id='employer-1'))
        store.add('worker_documents', _doc(DocumentType.PHOTOGRAPHS, worker_id='employer-1'))

        result = documents.record_decision(
            'employer-1', DocumentType.PHOTOGRAPHS, 'approved', 'admin-1', as_admin=True
        )

        assert result['fullyApproved'] is True
        assert result['documentStats']['total'] == len(DocumentType.EMPLOYER_REQUIRED)
        assert result['workerStatus'] == WorkerStatus.VERIFICATION_PENDING
        hold, = store.ops('profiles', 'Update')
        assert ':new' not in hold['ExpressionAttributeValues']
