from datetime import date, datetime

from fastapi import APIRouter, Depends, Path, Query, status
from pydantic import ConfigDict, Field, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel
from sqlalchemy.orm import Session

from taskapi.auth.dependencies import get_current_user
from taskapi.core.responses import success_response
from taskapi.core.schemas import CamelModel
from taskapi.database import get_db
from taskapi.entities import TaskFilters, TaskRecord, UserRecord
from taskapi.models.task import TaskPriority
from taskapi.repositories.task_repository import TaskRepository
from taskapi.services.task_service import DEFAULT_LIMIT, DEFAULT_PAGE, TaskService
from taskapi.validation import clean_optional_text, clean_tags, clean_title

MAX_PAGE_SIZE = 100

router = APIRouter(tags=['tasks'])


class CreateTaskRequest(CamelModel):
    title: str = Field(default='', validate_default=True)
    description: str | None = None
    due_date: date | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    tags: list[str] | None = None

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        return clean_title(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return clean_optional_text(value)

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, value: list[str] | None) -> list[str] | None:
        return clean_tags(value)


class UpdateTaskRequest(CamelModel):
    title: str | None = None
    description: str | None = None
    completed: bool | None = None
    due_date: date | None = None
    priority: TaskPriority | None = None
    tags: list[str] | None = None

    @field_validator('title', 'completed', 'priority')
    @classmethod
    def reject_null(cls, value, info: ValidationInfo):
        if value is None:
            raise ValueError(f'{to_camel(info.field_name)} cannot be null')
        return value

    @field_validator('title')
    @classmethod
    def validate_title(cls, value: str) -> str:
        return clean_title(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        return clean_optional_text(value)

    @field_validator('tags')
    @classmethod
    def validate_tags(cls, value: list[str] | None) -> list[str]:
        return clean_tags(value) or []


class TaskResponse(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None = None
    completed: bool
    due_date: date | None = None
    priority: TaskPriority
    tags: list[str]
    user_id: int
    created_at: datetime | None = None
    updated_at: datetime | None = None


def task_payload(task: TaskRecord) -> dict:
    return TaskResponse.model_validate(task).model_dump(mode='json', by_alias=True)


def get_task_service(db: Session = Depends(get_db)) -> TaskService:
    return TaskService(TaskRepository(db))


@router.get('/statistics')
def get_statistics(
    current_user: UserRecord = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    stats = service.statistics(current_user.id)
    return success_response({
        'total': stats.total,
        'completed': stats.completed,
        'pending': stats.pending,
        'byPriority': stats.by_priority,
    })


@router.get('')
def list_tasks(
    page: int = Query(default=DEFAULT_PAGE, ge=1),
    limit: int = Query(default=DEFAULT_LIMIT, ge=1, le=MAX_PAGE_SIZE),
    completed: bool | None = Query(default=None),
    priority: TaskPriority | None = Query(default=None),
    search: str | None = Query(default=None),
    current_user: UserRecord = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    filters = TaskFilters(
        completed=completed,
        priority=priority,
        search=clean_optional_text(search),
    )
    result = service.list_tasks(current_user.id, filters, page=page, limit=limit)

    return success_response({
        'tasks': [task_payload(task) for task in result.tasks],
        'pagination': {
            'total': result.total,
            'page': result.page,
            'limit': result.limit,
            'totalPages': result.total_pages,
        },
    })


@router.get('/{task_id}')
def get_task(
    task_id: int = Path(),
    current_user: UserRecord = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    task = service.get_task(task_id, current_user.id)
    return success_response({'task': task_payload(task)})


@router.post('', status_code=status.HTTP_201_CREATED)
def create_task(
    data: CreateTaskRequest,
    current_user: UserRecord = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    fields = data.model_dump()
    fields['tags'] = fields['tags'] or []
    task = service.create_task(current_user.id, fields)
    return success_response({'task': task_payload(task)}, 'Task created successfully')


@router.put('/{task_id}')
def update_task(
    data: UpdateTaskRequest,
    task_id: int = Path(),
    current_user: UserRecord = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    task = service.update_task(task_id, current_user.id, data.model_dump(exclude_unset=True))
    return success_response({'task': task_payload(task)}, 'Task updated successfully')


@router.delete('/{task_id}')
def delete_task(
    task_id: int = Path(),
    current_user: UserRecord = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    service.delete_task(task_id, current_user.id)
    return success_response(message='Task deleted successfully')
