from sqlalchemy import func, or_
from sqlalchemy.orm import Query, Session

from taskapi.entities import TaskFilters, TaskRecord
from taskapi.models.task import Task, TaskPriority

# Largest value an INTEGER primary key column can hold.
MAX_TASK_ID = 2**31 - 1

TASK_FIELDS = {"title", "description", "completed", "due_date", "priority", "tags"}


def to_record(task: Task) -> TaskRecord:
    return TaskRecord(
        id=task.id,
        user_id=task.user_id,
        title=task.title,
        description=task.description,
        completed=task.completed,
        due_date=task.due_date,
        priority=TaskPriority(task.priority),
        tags=list(task.tags or []),
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _check_fields(fields: dict) -> None:
    unknown = set(fields) - TASK_FIELDS
    if unknown:
        raise ValueError(f"Unknown task fields: {', '.join(sorted(unknown))}")


class TaskRepository:
    def __init__(self, db: Session) -> None:
        self.db = db

    def _owned(self, task_id: int, owner_id: int) -> Task | None:
        if not 1 <= task_id <= MAX_TASK_ID:
            return None
        return self.db.query(Task).filter(
            Task.id == task_id,
            Task.user_id == owner_id,
        ).first()

    def _filtered(self, owner_id: int, filters: TaskFilters) -> Query:
        query = self.db.query(Task).filter(Task.user_id == owner_id)

        if filters.completed is not None:
            query = query.filter(Task.completed.is_(filters.completed))

        if filters.priority is not None:
            query = query.filter(Task.priority == filters.priority)

        if filters.search:
            query = query.filter(
                or_(
                    Task.title.icontains(filters.search, autoescape=True),
                    Task.description.icontains(filters.search, autoescape=True),
                )
            )

        return query

    def find_by_id(self, task_id: int, owner_id: int) -> TaskRecord | None:
        task = self._owned(task_id, owner_id)
        if task is None:
            return None
        return to_record(task)

    def find_by_owner(
        self,
        owner_id: int,
        filters: TaskFilters,
        offset: int,
        limit: int,
    ) -> tuple[list[TaskRecord], int]:
        query = self._filtered(owner_id, filters)
        total = query.count()
        if offset >= total:
            return [], total

        rows = query.order_by(
            Task.completed.asc(),
            Task.due_date.asc().nulls_last(),
            Task.created_at.desc(),
            Task.id.desc(),
        ).offset(offset).limit(limit).all()

        return [to_record(task) for task in rows], total

    def insert(self, owner_id: int, fields: dict) -> TaskRecord:
        _check_fields(fields)
        task = Task(user_id=owner_id, **fields)
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return to_record(task)

    def update_partial(self, task_id: int, owner_id: int, fields: dict) -> TaskRecord | None:
        _check_fields(fields)
        task = self._owned(task_id, owner_id)
        if task is None:
            return None

        for name, value in fields.items():
            setattr(task, name, value)
        self.db.commit()
        self.db.refresh(task)
        return to_record(task)

    def delete(self, task_id: int, owner_id: int) -> bool:
        task = self._owned(task_id, owner_id)
        if task is None:
            return False

        self.db.delete(task)
        self.db.commit()
        return True

    def count_by(self, owner_id: int, **criteria) -> int:
        return self.db.query(Task).filter_by(user_id=owner_id, **criteria).count()

    def count_by_priority(self, owner_id: int) -> dict[str, int]:
        rows = self.db.query(Task.priority, func.count(Task.id)).filter(
            Task.user_id == owner_id,
        ).group_by(Task.priority).all()

        return {TaskPriority(priority).value: count for priority, count in rows}
