"""Modele Parametre / Reference data model (stations, brands, suppliers, task tags)."""

import enum

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleetdesk.database import Base


class SettingType(str, enum.Enum):
    STATIONS = "stations"
    BRANDS = "brands"
    SUPPLIERS = "suppliers"
    TASK_TAGS = "taskTags"


class Setting(Base):
    __tablename__ = "settings"
    __table_args__ = (UniqueConstraint("owner_id", "type", "value", name="uq_settings_owner_type_value"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    value: Mapped[str] = mapped_column(String(150), nullable=False)

    def __repr__(self) -> str:
        return f"<Setting {self.type}={self.value}>"
