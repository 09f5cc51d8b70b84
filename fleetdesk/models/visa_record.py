"""Modele visite / Visa and inspection record model."""

import datetime as dt
import enum

from sqlalchemy import Date, Enum, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from fleetdesk.database import Base


class VisaRecordType(str, enum.Enum):
    VISA = "visa"
    INSPECTION = "inspection"


class VisaInspectionRecord(Base):
    __tablename__ = "visa_inspection_records"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    vehicle_id: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    type: Mapped[VisaRecordType] = mapped_column(Enum(VisaRecordType), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    expiration_date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    cost: Mapped[float] = mapped_column(Float, default=0.0)
    notes: Mapped[str | None] = mapped_column(Text)

    def __repr__(self) -> str:
        return f"<VisaInspectionRecord {self.type.value} - vehicle {self.vehicle_id} until {self.expiration_date}>"
