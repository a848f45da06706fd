"""
Tests for task creation, lifecycle and worker browsing.
"""
from decimal import Decimal

import pytest

from conftest import make_employer, make_worker
from shared import tasks
from shared.exceptions import Forbidden, IllegalTransition, ValidationError
from shared.models import TaskStatus, WorkerStatus


def _task(**extra):
    task = {
        'taskId': 'task-1',
        'employerId': 'employer-1',
        'title': 'Label photos',
        'budget': Decimal('100'),
        'status': TaskStatus.ACTIVE,
        'slots': 2,
        'completedSlots': 0,
        'createdAt': '2026-09-01T00:00:00+00:00',
    }
    task.update(extra)
    return task


class TestCreateTask:

    def test_creates_active_task(self, store):
        store.add('profiles', make_employer())

        task = tasks.create_task('employer-1', {
            'title': 'Label photos',
            'budget': '250.50',
            'slots': 3,
            'targeting': {'countries': ['IN'], 'ageRange': {'min': 18, 'max': 40}},
        })

        assert task['status'] == TaskStatus.ACTIVE
        assert task['budget'] == Decimal('250.50')
        assert task['slots'] == 3
        assert task['completedSlots'] == 0
        assert task['targeting']['ageRange'] == {'min': 18, 'max': 40}
        assert store.puts[0]['table'] == 'tasks'

    def test_unapproved_employer(self, store):
        store.add('profiles', make_employer(status=WorkerStatus.VERIFICATION_PENDING))

        with pytest.raises(IllegalTransition):
            tasks.create_task('employer-1', {'title': 'x', 'budget': 10})

    def test_worker_cannot_create(self, store):
        store.add('profiles', make_worker(user_id='employer-1', status=WorkerStatus.ACTIVE_EMPLOYEE))

        with pytest.raises(Forbidden):
            tasks.create_task('employer-1', {'title': 'x', 'budget': 10})

    @pytest.mark.parametrize('budget', [0, -5, 'abc', None])
    def test_budget_must_be_positive(self, store, budget):
        store.add('profiles', make_employer())

        with pytest.raises(ValidationError):
            tasks.create_task('employer-1', {'title': 'x', 'budget': budget})

    @pytest.mark.parametrize('slots', [0, 1.5, True])
    def test_bad_slots(self, store, slots):
        store.add('profiles', make_employer())

        with pytest.raises(ValidationError):
            tasks.create_task('employer-1', {'title': 'x', 'budget': 10, 'slots': slots})

    def test_inverted_age_range(self, store):
        store.add('profiles', make_employer())

        with pytest.raises(ValidationError):
            tasks.create_task('employer-1', {
                'title': 'x', 'budget': 10, 'targeting': {'ageRange': {'min': 50, 'max': 20}},
            })

    def test_skills_checked_against_taxonomy(self, store):
        store.add('profiles', make_employer())
        store.add('subcategories', {
            'subcategoryId': 's1', 'categoryName': 'Data', 'name': 'Image Labeler', 'skills': ['bounding boxes'],
        })

        task = tasks.create_task('employer-1', {
            'title': 'x', 'budget': 10, 'role': 'image labeler', 'skills': ['bounding boxes'],
        })
        assert task['skills'] == ['bounding boxes']

        with pytest.raises(ValidationError):
            tasks.create_task('employer-1', {
                'title': 'x', 'budget': 10, 'role': 'Image Labeler', 'skills': ['welding'],
            })


class TestTaskStatus:

    def test_pause(self, store):
        store.add('tasks', _task())

        task = tasks.set_task_status('task-1', 'employer-1', TaskStatus.PAUSED)

        assert task['status'] == TaskStatus.PAUSED
        assert store.updates[0]['condition'] == '#status = :current'

    def test_completed_is_terminal(self, store):
        store.add('tasks', _task(status=TaskStatus.COMPLETED))

        with pytest.raises(IllegalTransition):
            tasks.set_task_status('task-1', 'employer-1', TaskStatus.ACTIVE)

    def test_same_status_is_noop(self, store):
        store.add('tasks', _task())

        tasks.set_task_status('task-1', 'employer-1', TaskStatus.ACTIVE)
        assert store.updates == []

    def test_only_owner(self, store):
        store.add('tasks', _task())

        with pytest.raises(Forbidden):
            tasks.set_task_status('task-1', 'employer-2', TaskStatus.PAUSED)


class TestListAvailable:

    def test_interview_pending_worker_sees_open_tasks(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.INTERVIEW_PENDING))
        store.add('tasks', _task())
        store.add('tasks', _task(taskId='full', completedSlots=2))

        result = tasks.list_available_tasks('worker-1')

        assert [t['taskId'] for t in result['tasks']] == ['task-1']
        assert result['tasks'][0]['slotsRemaining'] == 2
        assert result['canSubmitTasks'] is False

    def test_unverified_worker_blocked(self, store):
        store.add('profiles', make_worker(status=WorkerStatus.VERIFICATION_PENDING))

        with pytest.raises(Forbidden):
            tasks.list_available_tasks('worker-1')
