"""Journal des operations de rapprochement / Reconciliation operation log.

Ecrit dans la meme transaction que les mouvements : trace d'audit et cle
d'idempotence. Written in the same transaction as the stock movements: audit
trail plus idempotency key.
"""

from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from fleetdesk.database import Base


class OperationLog(Base):
    __tablename__ = "operation_logs"
    __table_args__ = (
        UniqueConstraint("owner_id", "idempotency_key", name="uq_operation_logs_owner_key"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True, nullable=False)
    operation: Mapped[str] = mapped_column(String(50), nullable=False)
    idempotency_key: Mapped[str | None] = mapped_column(String(100))
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    steps: Mapped[str | None] = mapped_column(Text)  # JSON des etapes
    created_at: Mapped[str] = mapped_column(String(32), nullable=False)  # ISO 8601

    def __repr__(self) -> str:
        return f"<OperationLog {self.operation} {self.entity_type}:{self.entity_id}>"
