"""Routes parametres / Reference list routes (stations, brands, suppliers, task tags)."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.api.deps import get_current_user
from fleetdesk.database import get_db
from fleetdesk.models.setting import Setting, SettingType
from fleetdesk.models.user import User
from fleetdesk.schemas.setting import SettingCreate, SettingRead
from fleetdesk.services.errors import NotFoundError

router = APIRouter()


@router.get("/{setting_type}", response_model=list[SettingRead])
async def list_settings(
    setting_type: SettingType,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = await db.execute(
        select(Setting)
        .where(Setting.owner_id == user.id, Setting.type == setting_type.value)
        .order_by(Setting.value)
    )
    return result.scalars().all()


@router.post("/{setting_type}", response_model=SettingRead, status_code=201)
async def create_setting(
    setting_type: SettingType,
    data: SettingCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    value = data.value.strip()
    if not value:
        raise HTTPException(status_code=422, detail="Value is required")
    existing = await db.execute(
        select(Setting.id).where(
            Setting.owner_id == user.id, Setting.type == setting_type.value, Setting.value == value
        )
    )
    if existing.first() is not None:
        raise HTTPException(status_code=409, detail=f"'{value}' already exists")
    setting = Setting(owner_id=user.id, type=setting_type.value, value=value)
    db.add(setting)
    await db.flush()
    await db.refresh(setting)
    return setting


@router.delete("/{setting_type}/{setting_id}", status_code=204)
async def delete_setting(
    setting_type: SettingType,
    setting_id: int,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    setting = await db.get(Setting, setting_id)
    if setting is None or setting.owner_id != user.id or setting.type != setting_type.value:
        raise NotFoundError("Setting", setting_id)
    await db.delete(setting)
