"""Routes taches / Task (reminder) routes."""

import datetime as dt

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.api.deps import ListParams, get_current_user, get_owned
from fleetdesk.database import get_db
from fleetdesk.models.task import Task
from fleetdesk.models.user import User
from fleetdesk.schemas.task import TaskCreate, TaskRead, TaskUpdate
from fleetdesk.services.metrics_service import MetricsService

router = APIRouter()


def _read(task: Task) -> TaskRead:
    out = TaskRead.model_validate(task)
    out.days_left = MetricsService.days_until(task.date)
    out.progress = MetricsService.progress_percent(out.days_left)
    return out


@router.get("/", response_model=list[TaskRead])
async def list_tasks(
    vehicle_id: int | None = None,
    completed: bool | None = None,
    date_from: dt.date | None = None,
    date_to: dt.date | None = None,
    params: ListParams = Depends(),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = select(Task).where(Task.owner_id == user.id).order_by(Task.date, Task.id)
    if vehicle_id is not None:
        query = query.where(Task.vehicle_id == vehicle_id)
    if completed is not None:
        query = query.where(Task.completed == completed)
    if date_from is not None:
        query = query.where(Task.date >= date_from)
    if date_to is not None:
        query = query.where(Task.date <= date_to)
    if params.search:
        pattern = f"%{params.search}%"
        query = query.where(or_(Task.title.ilike(pattern), Task.tag.ilike(pattern)))
    result = await db.execute(params.page(query))
    return [_read(t) for t in result.scalars().all()]


@router.post("/", response_model=TaskRead, status_code=201)
async def create_task(
    data: TaskCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    if not data.title.strip():
        raise HTTPException(status_code=422, detail="Title is required")
    task = Task(owner_id=user.id, **data.model_dump())
    db.add(task)
    await db.flush()
    await db.refresh(task)
    return _read(task)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _read(await get_owned(db, Task, user.id, task_id, "Task"))


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: int,
    data: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    task = await get_owned(db, Task, user.id, task_id, "Task")
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(task, key, value)
    await db.flush()
    await db.refresh(task)
    return _read(task)


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    task = await get_owned(db, Task, user.id, task_id, "Task")
    await db.delete(task)
