"""Schemas parametres / Settings schemas."""

from pydantic import BaseModel, ConfigDict


class SettingCreate(BaseModel):
    value: str


class SettingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: int
    type: str
    value: str
