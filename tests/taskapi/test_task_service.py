from datetime import date, datetime, timedelta, timezone

import pytest

from taskapi.core.errors import NotFound
from taskapi.entities import TaskFilters
from taskapi.models.task import Task, TaskPriority
from taskapi.models.user import User
from taskapi.repositories.task_repository import TaskRepository
from taskapi.services.task_service import TaskService


@pytest.fixture
def owners(task_db) -> tuple[int, int]:
    ana = User(name='Ana Lopez', email='ana@example.com', password_hash='x')
    bob = User(name='Bob Stone', email='bob@example.com', password_hash='x')
    task_db.add_all([ana, bob])
    task_db.commit()
    return ana.id, bob.id


@pytest.fixture
def service(task_db) -> TaskService:
    return TaskService(TaskRepository(task_db))


def _create(service: TaskService, owner_id: int, title: str, **fields):
    return service.create_task(owner_id, {'title': title, **fields})


def test_create_applies_defaults(service: TaskService, owners) -> None:
    ana, _ = owners

    task = _create(service, ana, 'Buy milk')

    assert task.id is not None
    assert task.user_id == ana
    assert task.completed is False
    assert task.priority is TaskPriority.MEDIUM
    assert task.tags == []
    assert task.description is None
    assert task.due_date is None
    assert task.created_at is not None


def test_get_returns_created_task_field_for_field(service: TaskService, owners) -> None:
    ana, _ = owners
    created = _create(
        service, ana, 'Pay rent',
        description='Transfer before the 5th',
        due_date=date(2026, 11, 1),
        priority=TaskPriority.HIGH,
        tags=['home', 'money'],
    )

    fetched = service.get_task(created.id, ana)

    assert fetched == created


def test_other_users_cannot_see_or_change_a_task(service: TaskService, owners) -> None:
    ana, bob = owners
    task = _create(service, ana, 'Private task')

    with pytest.raises(NotFound) as exception_info:
        service.get_task(task.id, bob)
    assert exception_info.value.message == 'Task not found'

    with pytest.raises(NotFound):
        service.update_task(task.id, bob, {'completed': True})

    with pytest.raises(NotFound):
        service.delete_task(task.id, bob)

    assert service.get_task(task.id, ana).completed is False


def test_missing_task_is_not_found(service: TaskService, owners) -> None:
    ana, _ = owners

    with pytest.raises(NotFound):
        service.get_task(12345, ana)


@pytest.mark.parametrize('task_id', [0, -1, 2**31, 10**20])
def test_ids_outside_integer_range_are_not_found(service: TaskService, owners, task_id: int) -> None:
    ana, _ = owners
    _create(service, ana, 'Real task')

    with pytest.raises(NotFound):
        service.get_task(task_id, ana)
    with pytest.raises(NotFound):
        service.update_task(task_id, ana, {'completed': True})
    with pytest.raises(NotFound):
        service.delete_task(task_id, ana)


def test_partial_update_keeps_unspecified_fields(service: TaskService, owners) -> None:
    ana, _ = owners
    task = _create(
        service, ana, 'Write report',
        description='Quarterly numbers',
        due_date=date(2026, 12, 1),
        priority=TaskPriority.LOW,
        tags=['work'],
    )

    updated = service.update_task(task.id, ana, {'completed': True})

    assert updated.completed is True
    assert updated.title == 'Write report'
    assert updated.description == 'Quarterly numbers'
    assert updated.due_date == date(2026, 12, 1)
    assert updated.priority is TaskPriority.LOW
    assert updated.tags == ['work']


def test_delete_removes_task_permanently(service: TaskService, owners) -> None:
    ana, _ = owners
    task = _create(service, ana, 'Throw away')

    service.delete_task(task.id, ana)

    with pytest.raises(NotFound):
        service.get_task(task.id, ana)
    with pytest.raises(NotFound):
        service.delete_task(task.id, ana)


def test_list_is_scoped_and_filtered_by_completion(service: TaskService, owners) -> None:
    ana, bob = owners
    done = _create(service, ana, 'Done')
    service.update_task(done.id, ana, {'completed': True})
    _create(service, ana, 'Open')
    bob_task = _create(service, bob, 'Bob done')
    service.update_task(bob_task.id, bob, {'completed': True})

    page = service.list_tasks(ana, TaskFilters(completed=True))

    assert [task.title for task in page.tasks] == ['Done']
    assert page.total == 1


def test_list_filters_by_priority(service: TaskService, owners) -> None:
    ana, _ = owners
    _create(service, ana, 'Urgent', priority=TaskPriority.HIGH)
    _create(service, ana, 'Normal')

    page = service.list_tasks(ana, TaskFilters(priority=TaskPriority.HIGH))

    assert [task.title for task in page.tasks] == ['Urgent']


def test_list_search_matches_title_or_description_case_insensitively(service: TaskService, owners) -> None:
    ana, _ = owners
    _create(service, ana, 'Buy MILK')
    _create(service, ana, 'Groceries', description='eggs and milk')
    _create(service, ana, 'Call mom')

    page = service.list_tasks(ana, TaskFilters(search='Milk'))

    assert sorted(task.title for task in page.tasks) == ['Buy MILK', 'Groceries']


def test_list_search_treats_wildcards_literally(service: TaskService, owners) -> None:
    ana, _ = owners
    _create(service, ana, '100% done')
    _create(service, ana, '1000 things')

    page = service.list_tasks(ana, TaskFilters(search='0%'))

    assert [task.title for task in page.tasks] == ['100% done']


def test_list_orders_incomplete_first_then_due_date_then_newest(service: TaskService, owners, task_db) -> None:
    ana, _ = owners
    base = datetime(2026, 1, 1, tzinfo=timezone.utc)
    rows = [
        ('done early', True, date(2026, 1, 1)),
        ('open late', False, date(2026, 3, 1)),
        ('open no date', False, None),
        ('open early', False, date(2026, 1, 15)),
        ('open early newer', False, date(2026, 1, 15)),
    ]
    for offset, (title, completed, due) in enumerate(rows):
        task = _create(service, ana, title, due_date=due, completed=completed)
        task_db.query(Task).filter(Task.id == task.id).update(
            {Task.created_at: base + timedelta(minutes=offset)}
        )
    task_db.commit()

    page = service.list_tasks(ana)

    assert [task.title for task in page.tasks] == [
        'open early newer',
        'open early',
        'open late',
        'open no date',
        'done early',
    ]
    completion = [task.completed for task in page.tasks]
    assert completion == sorted(completion)


@pytest.mark.parametrize(('count', 'limit', 'pages'), [(0, 10, 0), (7, 3, 3), (9, 3, 3), (10, 10, 1), (11, 10, 2)])
def test_total_pages_is_ceiling_of_total_over_limit(
    service: TaskService,
    owners,
    count: int,
    limit: int,
    pages: int,
) -> None:
    ana, _ = owners
    for index in range(count):
        _create(service, ana, f'Task {index}')

    page = service.list_tasks(ana, page=1, limit=limit)

    assert page.total == count
    assert page.total_pages == pages
    assert len(page.tasks) == min(count, limit)


def test_page_past_the_end_is_empty_but_keeps_total(service: TaskService, owners) -> None:
    ana, _ = owners
    for index in range(5):
        _create(service, ana, f'Task {index}')

    page = service.list_tasks(ana, page=4, limit=2)

    assert page.tasks == []
    assert page.total == 5
    assert page.total_pages == 3


def test_statistics_counts_are_consistent(service: TaskService, owners) -> None:
    ana, bob = owners
    first = _create(service, ana, 'One', priority=TaskPriority.HIGH)
    _create(service, ana, 'Two', priority=TaskPriority.HIGH)
    _create(service, ana, 'Three')
    service.update_task(first.id, ana, {'completed': True})
    _create(service, bob, 'Not mine', priority=TaskPriority.LOW)

    stats = service.statistics(ana)

    assert stats.total == 3
    assert stats.completed == 1
    assert stats.pending == 2
    assert stats.total == stats.completed + stats.pending
    assert stats.by_priority == {'medium': 1, 'high': 2}
    assert sum(stats.by_priority.values()) == stats.total


def test_statistics_for_user_without_tasks(service: TaskService, owners) -> None:
    ana, _ = owners

    stats = service.statistics(ana)

    assert (stats.total, stats.completed, stats.pending, stats.by_priority) == (0, 0, 0, {})


def test_deleting_owner_cascades_to_tasks(service: TaskService, owners, task_db) -> None:
    ana, _ = owners
    _create(service, ana, 'Orphan candidate')

    task_db.delete(task_db.get(User, ana))
    task_db.commit()

    assert task_db.query(Task).count() == 0
