"""Schemas releves km / Km record schemas."""

import datetime as dt

from pydantic import BaseModel, ConfigDict


class KmRecordCreate(BaseModel):
    vehicle_id: int
    km: int
    date: dt.date
    is_correction: bool = False


class KmRecordRead(KmRecordCreate):
    model_config = ConfigDict(from_attributes=True)
    id: int
