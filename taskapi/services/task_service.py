import logging
import math
from dataclasses import dataclass

from taskapi.core.errors import NotFound
from taskapi.entities import TaskFilters, TaskRecord, TaskStatistics
from taskapi.models.task import TaskPriority
from taskapi.repositories.task_repository import TaskRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


class TaskNotFound(NotFound):
    message = "Task not found"


@dataclass
class TaskPage:
    tasks: list[TaskRecord]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit)


class TaskService:
    """Owner-scoped task operations.

    Every lookup is filtered by the caller's id, so a task owned by somebody
    else is reported exactly like a task that does not exist.
    """

    def __init__(self, tasks: TaskRepository) -> None:
        self.tasks = tasks

    def list_tasks(
        self,
        user_id: int,
        filters: TaskFilters | None = None,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
    ) -> TaskPage:
        offset = (page - 1) * limit
        records, total = self.tasks.find_by_owner(user_id, filters or TaskFilters(), offset, limit)
        return TaskPage(tasks=records, total=total, page=page, limit=limit)

    def get_task(self, task_id: int, user_id: int) -> TaskRecord:
        task = self.tasks.find_by_id(task_id, user_id)
        if task is None:
            raise TaskNotFound()
        return task

    def create_task(self, user_id: int, fields: dict) -> TaskRecord:
        task = self.tasks.insert(user_id, fields)
        logger.info('Task created: %s by user: %s', task.id, user_id)
        return task

    def update_task(self, task_id: int, user_id: int, fields: dict) -> TaskRecord:
        # Not atomic: a concurrent delete between lookup and write ends as TaskNotFound.
        task = self.tasks.update_partial(task_id, user_id, fields)
        if task is None:
            raise TaskNotFound()
        logger.info('Task updated: %s by user: %s', task_id, user_id)
        return task

    def delete_task(self, task_id: int, user_id: int) -> None:
        if not self.tasks.delete(task_id, user_id):
            raise TaskNotFound()
        logger.info('Task deleted: %s by user: %s', task_id, user_id)

    def statistics(self, user_id: int) -> TaskStatistics:
        total = self.tasks.count_by(user_id)
        completed = self.tasks.count_by(user_id, completed=True)
        pending = self.tasks.count_by(user_id, completed=False)
        by_priority = self.tasks.count_by_priority(user_id)

        return TaskStatistics(
            total=total,
            completed=completed,
            pending=pending,
            by_priority={
                priority.value: by_priority[priority.value]
                for priority in TaskPriority
                if priority.value in by_priority
            },
        )
