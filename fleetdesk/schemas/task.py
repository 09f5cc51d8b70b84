"""Schemas taches / Task schemas."""

import datetime as dt

from pydantic import BaseModel, ConfigDict


class TaskCreate(BaseModel):
    title: str
    description: str | None = None
    date: dt.date
    tag: str | None = None
    vehicle_id: int | None = None
    completed: bool = False


class TaskUpdate(BaseModel):
    title: str | None = None
    description: str | None = None
    date: dt.date | None = None
    tag: str | None = None
    vehicle_id: int | None = None
    completed: bool | None = None


class TaskRead(TaskCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int
    days_left: int | None = None
    progress: float = 0.0
