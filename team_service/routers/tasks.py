from fastapi import APIRouter, Depends, status

from team_service.core.errors import ValidationError
from team_service.models import TaskCreate, TaskUpdate
from team_service.services.task_service import TaskService, get_task_service

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(service: TaskService = Depends(get_task_service)):
    """Most recent tasks of this team, newest first"""
    return await service.list_tasks()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    task_data: TaskCreate, service: TaskService = Depends(get_task_service)
):
    """Create a new task"""
    if not task_data.title:
        raise ValidationError("Title is required")
    return {"task": await service.create_task(task_data)}


@router.get("/{task_id}")
async def get_task(task_id: int, service: TaskService = Depends(get_task_service)):
    """Get a specific task by ID"""
    return {"task": await service.get_task(task_id)}


@router.put("/{task_id}")
async def update_task(
    task_id: int,
    task_data: TaskUpdate,
    service: TaskService = Depends(get_task_service),
):
    return {"task": await service.update_task(task_id, task_data)}


@router.delete("/{task_id}")
async def delete_task(task_id: int, service: TaskService = Depends(get_task_service)):
    """Delete a task"""
    task = await service.delete_task(task_id)
    return {"message": "Task deleted", "task": task}
