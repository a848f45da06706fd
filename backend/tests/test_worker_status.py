"""
Tests for the worker lifecycle transition table and the status write path.
"""
import pytest

from conftest import make_employer, make_worker
from shared import worker_status
from shared.exceptions import ConflictError, IllegalTransition, NotFound
from shared.models import WorkerStatus
from shared.worker_status import Trigger, next_state


class TestNextState:
    """Pure transition function."""

    def test_happy_path(self):
        status = WorkerStatus.DOCUMENT_UPLOAD_PENDING
        for trigger, expected in [
            (Trigger.DOCUMENTS_SUBMITTED, WorkerStatus.VERIFICATION_PENDING),
            (Trigger.ALL_DOCUMENTS_APPROVED, WorkerStatus.INTERVIEW_PENDING),
            (Trigger.INTERVIEW_SCHEDULED, WorkerStatus.INTERVIEW_SCHEDULED),
            (Trigger.INTERVIEW_SELECTED, WorkerStatus.ACTIVE_EMPLOYEE),
        ]:
            status = next_state(status, trigger)
            assert status == expected

    def test_skipping_verification_is_illegal(self):
        with pytest.raises(IllegalTransition):
            next_state(WorkerStatus.DOCUMENT_UPLOAD_PENDING, Trigger.ALL_DOCUMENTS_APPROVED)

    def test_scheduling_before_documents_approved_is_illegal(self):
        with pytest.raises(IllegalTransition):
            next_state(WorkerStatus.VERIFICATION_PENDING, Trigger.INTERVIEW_SCHEDULED)

    def test_rejected_is_terminal(self):
        for trigger in Trigger.ALL:
            with pytest.raises(IllegalTransition):
                next_state(WorkerStatus.REJECTED, trigger)

    def test_interview_rejection(self):
        assert next_state(WorkerStatus.INTERVIEW_SCHEDULED, Trigger.INTERVIEW_REJECTED) == WorkerStatus.REJECTED

    def test_cancel_returns_to_interview_pending(self):
        assert next_state(WorkerStatus.INTERVIEW_SCHEDULED, Trigger.INTERVIEW_CANCELLED) == WorkerStatus.INTERVIEW_PENDING

    @pytest.mark.parametrize('status', WorkerStatus.PRE_ACTIVE)
    def test_application_rejected_from_any_pre_active_state(self, status):
        assert next_state(status, Trigger.APPLICATION_REJECTED) == WorkerStatus.REJECTED

    def test_active_worker_cannot_be_rejected(self):
        with pytest.raises(IllegalTransition):
            next_state(WorkerStatus.ACTIVE_EMPLOYEE, Trigger.APPLICATION_REJECTED)

    def test_repeated_promotion_is_idempotent(self):
        assert next_state(WorkerStatus.ACTIVE_EMPLOYEE, Trigger.INTERVIEW_SELECTED) == WorkerStatus.ACTIVE_EMPLOYEE

    def test_unknown_status(self):
        with pytest.raises(IllegalTransition):
            next_state('documents_uploaded', Trigger.DOCUMENTS_SUBMITTED)

    def test_unknown_trigger(self):
        with pytest.raises(IllegalTransition):
            next_state(WorkerStatus.INTERVIEW_PENDING, 'promote')

    def test_employer_track(self):
        assert next_state(WorkerStatus.VERIFICATION_PENDING, Trigger.EMPLOYER_APPROVED, 'employer') == WorkerStatus.ACTIVE_EMPLOYEE
        with pytest.raises(IllegalTransition):
            next_state(WorkerStatus.VERIFICATION_PENDING, Trigger.ALL_DOCUMENTS_APPROVED, 'employer')

    def test_workers_cannot_be_approved_as_employers(self):
        with pytest.raises(IllegalTransition):
            next_state(WorkerStatus.VERIFICATION_PENDING, Trigger.EMPLOYER_APPROVED, 'worker')

    def test_admin_has_no_lifecycle(self):
        with pytest.raises(IllegalTransition):
            next_state(WorkerStatus.VERIFICATION_PENDING, Trigger.EMPLOYER_APPROVED, 'admin')


class TestAdvance:
    """Status writes go out as one guarded transaction with an audit entry."""

    def test_writes_profile_and_audit_log_atomically(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.INTERVIEW_PENDING))

        new_status = worker_status.advance('worker-1', Trigger.INTERVIEW_SCHEDULED, actor_id='employer-1')

        assert new_status == WorkerStatus.INTERVIEW_SCHEDULED
        assert len(store.transactions) == 1
        profile_op, = store.ops('profiles', 'Update')
        assert profile_op['ExpressionAttributeValues'][':new'] == WorkerStatus.INTERVIEW_SCHEDULED
        assert profile_op['ExpressionAttributeValues'][':current'] == WorkerStatus.INTERVIEW_PENDING
        assert profile_op['ExpressionAttributeValues'][':version'] == 3
        assert profile_op['ExpressionAttributeValues'][':next'] == 4
        assert 'statusVersion = :version' in profile_op['ConditionExpression']

        log, = store.ops('worker_status_logs', 'Put')
        assert log['Item']['oldStatus'] == WorkerStatus.INTERVIEW_PENDING
        assert log['Item']['newStatus'] == WorkerStatus.INTERVIEW_SCHEDULED
        assert log['Item']['trigger'] == Trigger.INTERVIEW_SCHEDULED
        assert log['Item']['changedBy'] == 'employer-1'

    def test_illegal_trigger_writes_nothing(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))

        with pytest.raises(IllegalTransition):
            worker_status.advance('worker-1', Trigger.INTERVIEW_SCHEDULED)
        assert store.transactions == []

    def test_missing_profile(self, store):
        with pytest.raises(NotFound):
            worker_status.advance('ghost', Trigger.DOCUMENTS_SUBMITTED)

    def test_repeated_promotion_writes_no_status_change(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.ACTIVE_EMPLOYEE))
        extra = {'Put': {'TableName': 'worker_interviews', 'Item': {'interviewId': 'i-1'}}}

        new_status = worker_status.advance('worker-1', Trigger.INTERVIEW_SELECTED, extra_items=[extra])

        assert new_status == WorkerStatus.ACTIVE_EMPLOYEE
        assert store.last_transaction == [extra]
        assert store.ops('profiles') == []
        assert store.ops('worker_status_logs') == []

    def test_legacy_profile_without_version(self, store):
        profile = make_worker(status=WorkerStatus.DOCUMENT_UPLOAD_PENDING)
        del profile['statusVersion']
        store.add('profiles', profile)

        worker_status.advance('worker-1', Trigger.DOCUMENTS_SUBMITTED)

        profile_op, = store.ops('profiles', 'Update')
        assert 'attribute_not_exists(statusVersion)' in profile_op['ConditionExpression']
        assert ':version' not in profile_op['ExpressionAttributeValues']
        assert profile_op['ExpressionAttributeValues'][':next'] == 1

    def test_concurrent_writer_surfaces_conflict(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.INTERVIEW_PENDING))
        store.fail('transact_write', ConflictError("Concurrent modification detected"))

        with pytest.raises(ConflictError):
            worker_status.advance('worker-1', Trigger.INTERVIEW_SCHEDULED)

    def test_employer_approval(self, store):
        store.add('profiles', make_employer(status=WorkerStatus.VERIFICATION_PENDING))

        assert worker_status.advance('employer-1', Trigger.EMPLOYER_APPROVED, actor_id='admin-1') == WorkerStatus.ACTIVE_EMPLOYEE


class TestHoldItems:

    def test_bumps_version_without_status_change(self):
        op, = worker_status.hold_items(make_worker(status=WorkerStatus.VERIFICATION_PENDING))

        update = op['Update']
        assert update['UpdateExpression'] == 'SET statusVersion = :next, updatedAt = :ts'
        assert update['ConditionExpression'] == '#ws = :current AND statusVersion = :version'
        assert update['ExpressionAttributeValues'][':current'] == WorkerStatus.VERIFICATION_PENDING
        assert update['ExpressionAttributeValues'][':next'] == 4
        assert ':new' not in update['ExpressionAttributeValues']

    def test_legacy_profile_without_version(self):
        profile = make_worker()
        del profile['statusVersion']

        op, = worker_status.hold_items(profile)
        assert 'attribute_not_exists(statusVersion)' in op['Update']['ConditionExpression']
        assert op['Update']['ExpressionAttributeValues'][':next'] == 1


class TestProjections:

    def test_job_access(self):
        assert not worker_status.can_access_jobs(WorkerStatus.DOCUMENT_UPLOAD_PENDING)
        assert not worker_status.can_access_jobs(WorkerStatus.VERIFICATION_PENDING)
        assert worker_status.can_access_jobs(WorkerStatus.INTERVIEW_PENDING)
        assert worker_status.can_access_jobs(WorkerStatus.INTERVIEW_SCHEDULED)
        assert worker_status.can_access_jobs(WorkerStatus.ACTIVE_EMPLOYEE)
        assert not worker_status.can_access_jobs(WorkerStatus.REJECTED)

    def test_only_active_employees_submit(self):
        assert worker_status.can_submit_tasks(WorkerStatus.ACTIVE_EMPLOYEE)
        assert not worker_status.can_submit_tasks(WorkerStatus.INTERVIEW_SCHEDULED)

    def test_status_info(self):
        info = worker_status.status_info(WorkerStatus.VERIFICATION_PENDING)
        assert info['title'] == 'Document Verification in Progress'
        assert info['nextSteps']
        assert info['canAccessJobs'] is False

    def test_status_info_falls_back_for_unknown(self):
        assert worker_status.status_info(None)['status'] == WorkerStatus.DOCUMENT_UPLOAD_PENDING
