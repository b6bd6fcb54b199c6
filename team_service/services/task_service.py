from fastapi import Depends
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from team_service.cache.decorators import async_cached_expire
from team_service.cache.layer import CacheLayer, get_cache, task_list_key
from team_service.core.config import Settings, get_app_settings
from team_service.core.errors import NotFoundError, raises_store_error
from team_service.database import get_db
from team_service.models import Task, TaskCreate, TaskResponse, TaskUpdate, get_utc_now


def _listing_key(service: "TaskService", *_, **__) -> str:
    return task_list_key(service.settings.team_name)


class TaskService:
    """Task CRUD scoped to the configured team; writes drop the cached listing."""

    def __init__(self, db: AsyncSession, cache: CacheLayer, settings: Settings):
        self.db = db
        self.cache = cache
        self.settings = settings

    async def _get_scoped(self, task_id: int) -> Task:
        query = select(Task).where(
            Task.id == task_id, Task.team_name == self.settings.team_name
        )
        result = await self.db.exec(query)
        task = result.first()
        if task is None:
            raise NotFoundError("Task not found")
        return task

    @raises_store_error("Failed to fetch tasks")
    async def list_tasks(self) -> dict:
        query = (
            select(Task)
            .where(Task.team_name == self.settings.team_name)
            .order_by(Task.created_at.desc(), Task.id.desc())
            .limit(self.settings.task_list_limit)
        )
        result = await self.db.exec(query)
        tasks = [
            TaskResponse.model_validate(task).model_dump(mode="json")
            for task in result.all()
        ]
        return {"tasks": tasks, "count": len(tasks)}

    @async_cached_expire(_listing_key)
    @raises_store_error("Failed to create task")
    async def create_task(self, task_data: TaskCreate) -> TaskResponse:
        task = Task(
            title=task_data.title,
            description=task_data.description,
            status=task_data.status or "pending",
            team_name=self.settings.team_name,
            service_name=self.settings.service_name,
        )
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)
        return TaskResponse.model_validate(task)

    @raises_store_error("Failed to fetch task")
    async def get_task(self, task_id: int) -> TaskResponse:
        task = await self._get_scoped(task_id)
        return TaskResponse.model_validate(task)

    # Fields sent as null keep their stored value, same as omitted ones.
    @async_cached_expire(_listing_key)
    @raises_store_error("Failed to update task")
    async def update_task(self, task_id: int, task_data: TaskUpdate) -> TaskResponse:
        task = await self._get_scoped(task_id)
        task.sqlmodel_update(task_data.model_dump(exclude_none=True))
        task.updated_at = get_utc_now()
        self.db.add(task)
        await self.db.commit()
        await self.db.refresh(task)
        return TaskResponse.model_validate(task)

    @async_cached_expire(_listing_key)
    @raises_store_error("Failed to delete task")
    async def delete_task(self, task_id: int) -> TaskResponse:
        task = await self._get_scoped(task_id)
        removed = TaskResponse.model_validate(task)
        await self.db.delete(task)
        await self.db.commit()
        return removed


def get_task_service(
    db: AsyncSession = Depends(get_db),
    cache: CacheLayer = Depends(get_cache),
    settings: Settings = Depends(get_app_settings),
) -> TaskService:
    return TaskService(db, cache, settings)
