# backoffice/models/inventory_movement.py
from __future__ import annotations

import uuid
from datetime import datetime

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column

from backoffice.db.base import Base
from backoffice.models._common import utc_now


class InventoryMovement(Base):
    """
    库存流水（只增不改）
    - quantity 记录本次的有符号变动量（delta），不是变动后的余额
    - type 与 reference_type 取同一枚举值（MovementReferenceType）
    - created_by 为执行调整的管理员
    """

    __tablename__ = "inventory_movements"
    __table_args__ = (
        sa.Index("ix_inventory_movements_variant_time", "variant_id", "created_at"),
        sa.Index("ix_inventory_movements_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(sa.Uuid, primary_key=True, default=uuid.uuid4)
    variant_id: Mapped[uuid.UUID] = mapped_column(
        sa.Uuid, sa.ForeignKey("product_variants.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(sa.String(16), nullable=False)
    quantity: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    reference_type: Mapped[str | None] = mapped_column(sa.String(16), nullable=True)
    reference_id: Mapped[uuid.UUID | None] = mapped_column(sa.Uuid, nullable=True)
    notes: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(sa.Uuid, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False, default=utc_now
    )

    def __repr__(self) -> str:
        return (
            f"<InventoryMovement {self.type} variant={self.variant_id} "
            f"delta={self.quantity} by={self.created_by}>"
        )
