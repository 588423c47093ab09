"""Plain records passed between the repositories and the services.

The services never touch ORM instances; repositories convert rows to these
structs on the way out, so a record is a detached snapshot of one row.
"""

from dataclasses import dataclass, field
from datetime import date, datetime

from taskapi.models.task import TaskPriority


@dataclass
class UserRecord:
    id: int
    name: str
    email: str
    active: bool = True
    role: str | None = None
    last_access: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    password_hash: str | None = field(default=None, repr=False)

    def token_claims(self) -> dict:
        return {"id": self.id, "email": self.email, "name": self.name}


@dataclass
class TaskRecord:
    id: int
    user_id: int
    title: str
    description: str | None = None
    completed: bool = False
    due_date: date | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class TaskFilters:
    completed: bool | None = None
    priority: TaskPriority | None = None
    search: str | None = None


@dataclass
class TaskStatistics:
    total: int
    completed: int
    pending: int
    by_priority: dict[str, int]
